"""
Typed application errors.

Every error carries the HTTP status it maps to and a message that is safe to
show to the caller. api.errors renders them in the uniform error envelope.
"""


class ApiError(Exception):
    status_code = 500
    error = "INTERNAL_ERROR"

    def __init__(self, message: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.message = message or "An unexpected error occurred"
        if status_code is not None:
            self.status_code = status_code

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.status_code}: {self.message}>"


class BadRequestError(ApiError):
    status_code = 400
    error = "BAD_REQUEST"


class UnauthorizedError(ApiError):
    status_code = 401
    error = "UNAUTHORIZED"


class NotFoundError(ApiError):
    status_code = 404
    error = "NOT_FOUND"


class ConflictError(ApiError):
    status_code = 409
    error = "CONFLICT"


class InternalError(ApiError):
    status_code = 500
    error = "INTERNAL_ERROR"
