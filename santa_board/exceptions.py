class SecretSantaError(ValueError):
    """Base class for errors raised by the gift board services"""

    status_code = 400


class InvalidInputError(SecretSantaError):
    """Request data failed validation before anything was stored"""

    status_code = 400


class AccessDeniedError(SecretSantaError):
    """Caller cannot prove it owns the record it tries to change"""

    status_code = 403


class NotFoundError(SecretSantaError):
    status_code = 404


class ConflictError(SecretSantaError):
    status_code = 409
