"""Domain errors raised by services and rendered as {"error": message} at the request boundary."""


class FilesManagerError(Exception):
    """Base error with the HTTP status it maps to."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(FilesManagerError):
    """Missing or malformed input."""


class InvalidParentError(ValidationError):
    """parentId does not reference an existing folder."""


class NotFoundError(FilesManagerError):
    """Unknown id, or a private file the requester does not own."""

    status_code = 404

    def __init__(self, message: str = "Not found") -> None:
        super().__init__(message)


class NotAFileError(FilesManagerError):
    """Content was requested for a folder."""

    def __init__(self, message: str = "A folder doesn't have content") -> None:
        super().__init__(message)
