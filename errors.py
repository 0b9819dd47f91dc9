# errors.py
from enum import Enum


class ErrorKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    INVALID_OPERATION = "invalid_operation"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INTERNAL = "internal"


class ServiceError(Exception):
    """Typed failure raised by the service layer.

    Services never raise HTTPException; the application maps each kind to a
    status code and renders the message in the response envelope.
    """
    kind: ErrorKind = ErrorKind.INTERNAL
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(ServiceError):
    kind = ErrorKind.INVALID_INPUT
    status_code = 400


class InvalidOperation(ServiceError):
    kind = ErrorKind.INVALID_OPERATION
    status_code = 400


class Unauthorized(ServiceError):
    kind = ErrorKind.UNAUTHORIZED
    status_code = 401


class Forbidden(ServiceError):
    kind = ErrorKind.FORBIDDEN
    status_code = 403


class NotFound(ServiceError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404


class Conflict(ServiceError):
    kind = ErrorKind.CONFLICT
    status_code = 409


class Internal(ServiceError):
    kind = ErrorKind.INTERNAL
    status_code = 500
