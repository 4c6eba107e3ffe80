"""
Error taxonomy.

Every error carries the HTTP status it maps to and whether the learner can
simply try again. Routes let these propagate; ``ulingo.main`` converts them
into a JSON notice.
"""


class ULingoError(Exception):
    status_code: int = 400
    retryable: bool = False

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__name__


# Store ------------------------------------------------------------------

class NotFoundError(ULingoError):
    status_code = 404


class StoreError(ULingoError):
    status_code = 503
    retryable = True


class ConcurrentUpdateError(ULingoError):
    """The record changed under us more times than we are willing to retry."""
    status_code = 409
    retryable = True


# Content ----------------------------------------------------------------

class InvalidContentError(ULingoError):
    status_code = 422


class EmptyLevelError(ULingoError):
    status_code = 422


class LevelLockedError(ULingoError):
    status_code = 403


# Sessions ---------------------------------------------------------------

class SessionNotFoundError(ULingoError):
    status_code = 404


class NoAnswerSelectedError(ULingoError):
    status_code = 409


class SessionFinishedError(ULingoError):
    status_code = 409


# External APIs ----------------------------------------------------------

class ExternalServiceError(ULingoError):
    status_code = 502
    retryable = True


# Auth -------------------------------------------------------------------

class AuthenticationError(ULingoError):
    status_code = 401


class PermissionDeniedError(ULingoError):
    status_code = 403


class DuplicateUserError(ULingoError):
    status_code = 400
