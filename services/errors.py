class ServiceError(Exception):
    """Base for failures reported to the caller. status_code is the HTTP mapping."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError, ValueError):
    status_code = 400


class NotFoundError(ServiceError):
    status_code = 404


class ConflictError(ServiceError):
    status_code = 409


class TransportError(ServiceError):
    status_code = 503


def error_for_status(status_code: int, message: str) -> ServiceError:
    """Rebuild the service error matching an HTTP error status."""
    if status_code in (400, 422):
        return ValidationError(message)
    if status_code == 404:
        return NotFoundError(message)
    if status_code == 409:
        return ConflictError(message)
    if status_code in (502, 503, 504):
        return TransportError(message)
    error = ServiceError(message)
    error.status_code = status_code
    return error
