"""
RQ Worker for background job processing
Handles invitation emails and inviter notifications
"""
import os
import sys
from dotenv import load_dotenv
from redis import Redis
from rq import Worker, Queue

# Ensure the application is in the path
sys.path.insert(0, os.path.abspath(os.path.dirname(__file__)))

from workstream import create_app  # noqa: E402

load_dotenv()

# Create Flask application
app = create_app(os.getenv('FLASK_ENV', 'production'))

# Redis connection with SSL certificate handling
redis_url = app.config.get('REDIS_URL', 'redis://localhost:6379/0')
if redis_url.startswith('rediss://'):
    redis_url += '?ssl_cert_reqs=none'
redis_conn = Redis.from_url(redis_url)

# List of queues to listen on
listen_queues = [app.config.get('JOB_QUEUE_NAME', 'default')]

if __name__ == '__main__':
    with app.app_context():
        worker = Worker([Queue(name, connection=redis_conn) for name in listen_queues], connection=redis_conn)
        print(f"Starting RQ worker listening on queues: {', '.join(listen_queues)}")
        print(f"Redis URL: {redis_url}")
        worker.work()
