"""Custom exceptions for TidyFS."""


class TidyFSError(Exception):
    """Base exception for TidyFS errors."""
    pass


class FileSystemError(TidyFSError):
    """Exception for file system related errors."""
    pass


class PathNotFoundError(FileSystemError):
    """Root path is missing or is not a directory."""
    pass


class IoError(FileSystemError):
    """Per-file I/O failure while hashing or moving a file."""

    def __init__(self, message, path=None):
        super().__init__(message)
        self.path = path


class PermissionDeniedError(IoError):
    """Exception for file permission errors."""
    pass


class ConfigurationError(TidyFSError):
    """Exception for configuration related errors."""
    pass


class ValidationError(TidyFSError):
    """Exception for invalid user input."""
    pass


class ScanError(TidyFSError):
    """Exception for scanning operation errors."""
    pass


class ScanCancelledError(ScanError):
    """Exception for cancelled scan operations."""
    pass
