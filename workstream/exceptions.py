"""
Domain errors raised by the invitation and notification services

Each error carries the HTTP status the API answers with. Errors are raised
before any write happens, except Expired: the lapsed invitation has already
been persisted as expired when it is raised.
"""


class WorkstreamError(Exception):
    """Base class for errors surfaced to API callers"""
    status_code = 400

    def __init__(self, message=None):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__

    @property
    def code(self):
        return self.__class__.__name__

    def to_dict(self):
        return {'error': self.message, 'code': self.code}


class InvalidInput(WorkstreamError):
    """Invalid input"""
    status_code = 400


class NotAuthenticated(WorkstreamError):
    """Not authenticated"""
    status_code = 401


class NotAuthorized(WorkstreamError):
    """Not authorized"""
    status_code = 403


class NotFound(WorkstreamError):
    """Not found"""
    status_code = 404


class AlreadyExists(WorkstreamError):
    """Already exists"""
    status_code = 409


class InvalidState(WorkstreamError):
    """Invalid state for this operation"""
    status_code = 409


class Expired(WorkstreamError):
    """Invitation has expired"""
    status_code = 410


class DownstreamDeliveryFailure(WorkstreamError):
    """Email delivery failed"""
    status_code = 502
