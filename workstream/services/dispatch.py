"""
Background job dispatch

Email and fanout work is handed off here and never awaited by the caller.
Each job gets at most one attempt; a failure is logged and never retried
or surfaced to the operation that enqueued it.
"""
from flask import current_app
from redis import Redis
from rq import Queue
from workstream import db


class JobDispatcher:
    """Interface for handing work to the background"""

    def enqueue(self, func, *args, **kwargs):
        raise NotImplementedError


class RQJobDispatcher(JobDispatcher):
    """Enqueue jobs on a Redis-backed RQ queue for worker.py"""

    def __init__(self, redis_url, queue_name='default'):
        # For rediss:// (SSL) connections, disable strict certificate verification
        if redis_url.startswith('rediss://'):
            redis_url += '?ssl_cert_reqs=none'
        self.redis_conn = Redis.from_url(redis_url)
        self.queue = Queue(queue_name, connection=self.redis_conn)

    def enqueue(self, func, *args, **kwargs):
        return self.queue.enqueue(
            func,
            args=args,
            kwargs=kwargs,
            job_timeout='5m',
            result_ttl=3600,
            failure_ttl=86400
        )


class InlineJobDispatcher(JobDispatcher):
    """Run jobs immediately in the current app context (development and tests)"""

    def enqueue(self, func, *args, **kwargs):
        try:
            return func(*args, **kwargs)
        except Exception:
            db.session.rollback()
            current_app.logger.exception(f"[JOBS] Inline job {func.__name__} failed")
            return None


def init_job_dispatcher(app):
    """Attach the configured dispatcher to the app"""
    kind = app.config.get('JOB_DISPATCHER', 'rq')
    if kind == 'inline':
        dispatcher = InlineJobDispatcher()
    elif kind == 'rq':
        dispatcher = RQJobDispatcher(
            app.config.get('REDIS_URL', 'redis://localhost:6379/0'),
            app.config.get('JOB_QUEUE_NAME', 'default')
        )
    else:
        raise ValueError(f"Unknown JOB_DISPATCHER: {kind}")

    app.extensions['job_dispatcher'] = dispatcher
    return dispatcher


def get_dispatcher():
    return current_app.extensions['job_dispatcher']


def dispatch(func, *args, **kwargs):
    """
    Fire-and-forget a background job

    Returns the job handle, or None when the job could not be handed off.
    """
    try:
        return get_dispatcher().enqueue(func, *args, **kwargs)
    except Exception:
        current_app.logger.exception(f"[JOBS] Failed to enqueue {func.__name__}")
        return None
