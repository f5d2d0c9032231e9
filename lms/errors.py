"""
Domain errors raised by the helpers.

Helpers are shared by request handlers and batch scripts, so they raise these
instead of HTTPException. `lms.main` maps them to HTTP responses.
"""


class LMSError(Exception):
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(LMSError):
    status_code = 404


class LimitExceededError(LMSError):
    status_code = 400


class PermissionDeniedError(LMSError):
    status_code = 403


class ValidationFailedError(LMSError):
    status_code = 400


class ConflictError(LMSError):
    status_code = 409
