"""Base error types shared by every layer of the application."""


class APIRequesterError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class NotFoundError(APIRequesterError):
    """A referenced environment, collection or result does not exist."""

    status_code = 404


class ConflictError(APIRequesterError):
    """The requested change clashes with an existing record."""

    status_code = 409
