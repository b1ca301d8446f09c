class LibraryError(Exception):
    """Base class for everything the library backend raises on purpose."""


class ScanError(LibraryError):
    """The library root could not be read."""


class DeletionError(LibraryError):
    """A file survived both the plain and the privileged delete."""

    def __init__(self, filepath, cause):
        super().__init__(f"Cannot delete file: {cause}")
        self.filepath = filepath
        self.cause    = cause


class DispatchError(LibraryError):
    """The mail relay refused a message or could not be reached."""

    def __init__(self, message, details=None):
        super().__init__(message)
        self.details = details or {}
