import os
from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_login import LoginManager
from flask_wtf.csrf import CSRFProtect, CSRFError, generate_csrf
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_talisman import Talisman
from config import config
import sentry_sdk
from sentry_sdk.integrations.flask import FlaskIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
from sentry_sdk.integrations.rq import RqIntegration

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()
csrf = CSRFProtect()

# Storage comes from RATELIMIT_STORAGE_URI so tests can run against memory://
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["1000 per day", "200 per hour"]
)


def init_sentry(app):
    """Initialize Sentry error tracking and performance monitoring"""
    sentry_dsn = app.config.get('SENTRY_DSN')

    if sentry_dsn:
        sentry_sdk.init(
            dsn=sentry_dsn,
            integrations=[
                FlaskIntegration(),
                SqlalchemyIntegration(),
                RqIntegration(),
            ],
            # Performance monitoring - sample 10% of transactions
            traces_sample_rate=0.1,
            release=os.environ.get('HEROKU_SLUG_COMMIT', 'unknown'),
            environment=app.config.get('FLASK_ENV', 'development'),
            # Invitation emails are PII
            send_default_pii=False,
            sample_rate=1.0,
        )
        app.logger.info(f"Sentry initialized for {app.config.get('FLASK_ENV', 'development')} environment")
    else:
        app.logger.info("Sentry DSN not configured - error tracking disabled")


def register_error_handlers(app):
    """Render domain errors and HTTP errors as JSON"""
    from workstream.exceptions import WorkstreamError

    @app.errorhandler(WorkstreamError)
    def workstream_error(error):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(CSRFError)
    def csrf_error(error):
        return jsonify({'error': error.description, 'code': 'CSRFError'}), 400

    @app.errorhandler(400)
    def bad_request_error(error):
        return jsonify({'error': 'Bad request', 'code': 'BadRequest'}), 400

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'error': 'Not found', 'code': 'NotFound'}), 404

    @app.errorhandler(405)
    def method_not_allowed_error(error):
        return jsonify({'error': 'Method not allowed', 'code': 'MethodNotAllowed'}), 405

    @app.errorhandler(429)
    def ratelimit_error(error):
        return jsonify({'error': 'Too many requests', 'code': 'RateLimited'}), 429

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()  # Rollback any failed database transactions
        return jsonify({'error': 'Internal server error', 'code': 'InternalError'}), 500


def create_app(config_name='default'):
    """Application factory pattern"""
    app = Flask(__name__)
    app.config.from_object(config[config_name])

    # Initialize Sentry error tracking (do this early to catch initialization errors)
    init_sentry(app)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    csrf.init_app(app)
    limiter.init_app(app)

    from workstream.services.dispatch import init_job_dispatcher
    init_job_dispatcher(app)

    # Security headers (Talisman) - only in production
    if config_name == 'production':
        Talisman(
            app,
            force_https=True,
            strict_transport_security=True,
            strict_transport_security_max_age=31536000,  # 1 year
            content_security_policy={'default-src': "'self'"},
            frame_options='DENY',
        )

    # Import all models for Flask-Migrate
    with app.app_context():
        from workstream.models import user, project, task, invitation, notification, notification_settings  # noqa: F401

    # Identity resolution (session-held identity claims)
    from workstream import auth  # noqa: F401

    # Register blueprints
    from workstream.blueprints.invitations import invitations_bp
    from workstream.blueprints.notifications import notifications_bp
    from workstream.blueprints.admin import admin_bp

    app.register_blueprint(invitations_bp, url_prefix='/invitations')
    app.register_blueprint(notifications_bp, url_prefix='/notifications')
    app.register_blueprint(admin_bp)  # Workspace admin at /admin

    register_error_handlers(app)

    # Health check endpoint for monitoring and load balancers
    @app.route('/health')
    def health_check():
        """Health check endpoint - returns 200 if app is healthy"""
        from redis import Redis
        from sqlalchemy import text

        health_status = {
            'status': 'healthy',
            'version': os.environ.get('HEROKU_RELEASE_VERSION', 'unknown'),
            'environment': app.config.get('FLASK_ENV', 'development')
        }

        try:
            db.session.execute(text('SELECT 1'))
            health_status['database'] = 'connected'
        except Exception as e:
            health_status['status'] = 'unhealthy'
            health_status['database'] = f'error: {str(e)}'
            return jsonify(health_status), 500

        # Redis only matters when jobs go through RQ
        if app.config.get('JOB_DISPATCHER') == 'rq':
            try:
                redis_url = app.config.get('REDIS_URL', 'redis://localhost:6379/0')
                if redis_url.startswith('rediss://'):
                    redis_url += '?ssl_cert_reqs=none'
                Redis.from_url(redis_url).ping()
                health_status['redis'] = 'connected'
            except Exception as e:
                health_status['status'] = 'unhealthy'
                health_status['redis'] = f'error: {str(e)}'
                return jsonify(health_status), 500

        return jsonify(health_status), 200

    @app.route('/csrf-token')
    def csrf_token():
        """CSRF token for session-authenticated writes, sent back as X-CSRFToken"""
        return jsonify({'csrf_token': generate_csrf()})

    return app
