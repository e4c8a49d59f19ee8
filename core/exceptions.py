"""Domain errors raised by services and repositories.

Each error carries the HTTP status the API layer answers with; ``main.py``
registers a single handler for :class:`AppError`.
"""


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str = None):
        self.message = message or self.__class__.__name__
        super().__init__(self.message)


class StorageError(AppError):
    status_code = 502


class InferenceError(AppError):
    status_code = 502


class NotFoundError(AppError):
    status_code = 404


class NoImageError(AppError):
    status_code = 400

    def __init__(self, message: str = "No image found for this patient."):
        super().__init__(message)


class ValidationError(AppError):
    status_code = 400


class AuthError(AppError):
    status_code = 401


class PermissionDeniedError(AppError):
    status_code = 403


class ConflictError(AppError):
    status_code = 409


class PersistenceError(AppError):
    status_code = 500
