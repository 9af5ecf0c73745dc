"""
Error types raised by the record store and the domain services.

Each error carries the HTTP status code the API answers with, so the
routers never have to translate them one by one (see ``main.py``).
"""


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(AppError):
    """A Book, Tour, Transaction or User does not exist."""

    status_code = 404


class ConflictError(AppError):
    """Duplicate active borrow, duplicate e-mail or ISBN."""

    status_code = 400


class UnavailableError(AppError):
    """No copies of a book are left to lend."""

    status_code = 400


class ValidationError(AppError):
    status_code = 400


class StorageError(AppError):
    """A collection document could not be read, parsed or written."""

    status_code = 500
