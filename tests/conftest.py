"""
Pytest configuration and fixtures for Workstream tests
"""
from datetime import datetime, timedelta
import pytest
from flask import g
from workstream import create_app, db
from workstream.auth import Identity
from workstream.models.project import Project
from workstream.models.task import Task
from workstream.models.user import User
from workstream.services.dispatch import InlineJobDispatcher


@pytest.fixture(scope='session')
def app():
    """Create and configure a test application instance"""
    app = create_app('testing')

    # Establish an application context
    ctx = app.app_context()
    ctx.push()

    yield app

    ctx.pop()


@pytest.fixture(scope='session')
def _db(app):
    """Create test database"""
    db.create_all()
    yield db
    db.session.remove()


@pytest.fixture(scope='function', autouse=True)
def cleanup_db(_db):
    """Clean up database after each test"""
    yield

    # Rollback any open transactions
    _db.session.remove()

    for table in reversed(_db.metadata.sorted_tables):
        _db.session.execute(table.delete())
    _db.session.commit()


@pytest.fixture(scope='function')
def db_session(_db):
    """Provide the database session for tests"""
    return _db.session


class RecordingDispatcher(InlineJobDispatcher):
    """Inline dispatcher that also records every job handed to it"""

    def __init__(self, run_jobs=True):
        self.jobs = []
        self.run_jobs = run_jobs

    def enqueue(self, func, *args, **kwargs):
        self.jobs.append((func.__name__, args, kwargs))
        if not self.run_jobs:
            return None
        return super().enqueue(func, *args, **kwargs)

    def named(self, name):
        return [args for job_name, args, _ in self.jobs if job_name == name]

    def emails(self, template=None):
        """(template, recipient, params) of every email job"""
        return [args for args in self.named('send_email_job') if template is None or args[0] == template]


@pytest.fixture
def dispatcher(app):
    """Swap in a recording dispatcher for the duration of a test"""
    original = app.extensions['job_dispatcher']
    recorder = RecordingDispatcher()
    app.extensions['job_dispatcher'] = recorder
    yield recorder
    app.extensions['job_dispatcher'] = original


@pytest.fixture
def client(app):
    """Create a test client with login helpers"""
    client = app.test_client()

    def login(claims):
        """Sign in with identity provider claims"""
        with client.session_transaction() as sess:
            sess['_user_id'] = claims['sub']  # Flask-Login uses _user_id
            sess['_fresh'] = True
            sess['identity_claims'] = dict(claims)
        # Requests share the session-wide app context, so drop Flask-Login's cached user
        g.pop('_login_user', None)

    def logout():
        with client.session_transaction() as sess:
            sess.clear()
        g.pop('_login_user', None)

    client.login = login
    client.logout = logout
    yield client
    g.pop('_login_user', None)


def make_claims(sub, email, name=None, **extra):
    claims = {'sub': sub, 'email': email}
    if name:
        claims['name'] = name
    claims.update(extra)
    return claims


@pytest.fixture
def owner_claims():
    return make_claims('auth0|owner', 'owner@example.com', 'Olivia Owner')


@pytest.fixture
def owner_identity(owner_claims):
    return Identity.from_claims(owner_claims)


@pytest.fixture
def owner_user(db_session, owner_claims):
    """Directory record for the project owner"""
    user = User(subject_id=owner_claims['sub'], email=owner_claims['email'], name=owner_claims['name'])
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def outsider_identity(db_session):
    """A signed-in user with no project memberships"""
    user = User(subject_id='auth0|outsider', email='outsider@example.com', name='Oscar Outsider')
    db_session.add(user)
    db_session.commit()
    return Identity.from_claims(make_claims(user.subject_id, user.email, user.name))


@pytest.fixture
def admin_identity(db_session):
    """A workspace administrator"""
    user = User(subject_id='auth0|admin', email='admin@example.com', name='Ada Admin', is_admin=True)
    db_session.add(user)
    db_session.commit()
    return Identity.from_claims(make_claims(user.subject_id, user.email, user.name))


@pytest.fixture
def invitee_identity():
    """The person accepting invitations; no directory record yet"""
    return Identity.from_claims(make_claims('auth0|invitee', 'invitee@example.com', 'Ivy Invitee'))


@pytest.fixture
def project(db_session, owner_user):
    return Project.create_with_owner('Apollo', owner_user, description='Moon shot')


@pytest.fixture
def task(db_session, project, owner_user):
    task = Task(
        project_id=project.id,
        title='Write launch checklist',
        created_by=owner_user.subject_id,
        due_date=datetime.utcnow() + timedelta(days=5)
    )
    db_session.add(task)
    db_session.commit()
    return task
