"""Error handling utilities for TidyFS."""

import errno
import logging
from functools import wraps
from pathlib import Path
from typing import Callable, List, Union

from .exceptions import IoError, PermissionDeniedError, PathNotFoundError


class ErrorHandler:
    """Maps OS level failures onto the TidyFS exception taxonomy."""

    def __init__(self, logger: logging.Logger = None):
        """
        Initialize error handler.

        Args:
            logger: Logger instance to use for error reporting
        """
        self.logger = logger or logging.getLogger(__name__)

    def handle_file_system_error(self, error: Exception, file_path: Union[str, Path]) -> None:
        """
        Translate a per-file OS error into an IoError.

        Args:
            error: The exception that occurred
            file_path: Path where the error occurred

        Raises:
            PermissionDeniedError: On EACCES or EPERM
            IoError: For every other OS failure
        """
        file_path = Path(file_path) if isinstance(file_path, str) else file_path

        if isinstance(error, IoError):
            raise error

        if isinstance(error, OSError):
            if error.errno in (errno.EACCES, errno.EPERM):
                self.logger.warning(f"Permission denied accessing {file_path}: {error}")
                raise PermissionDeniedError(f"Permission denied: {file_path}", path=file_path) from error
            elif error.errno == errno.ENOENT:
                self.logger.warning(f"File vanished: {file_path}")
                raise IoError(f"File not found: {file_path}", path=file_path) from error
            elif error.errno == errno.ENOSPC:
                self.logger.error(f"No space left on device: {error}")
                raise IoError(f"No space left on device: {file_path}", path=file_path) from error
            elif error.errno == errno.EXDEV:
                self.logger.warning(f"Cross-device operation failed for {file_path}: {error}")
                raise IoError(f"Cross-device move failed: {file_path}", path=file_path) from error
            else:
                self.logger.error(f"File system error accessing {file_path}: {error}")
                raise IoError(f"File system error on {file_path}: {error}", path=file_path) from error

        self.logger.error(f"Unexpected file system error: {error}")
        raise IoError(f"Unexpected file system error on {file_path}: {error}", path=file_path) from error

    def validate_root(self, path: Path) -> None:
        """
        Check that a scan or organize root is an existing directory.

        Raises:
            PathNotFoundError: If the path is missing or not a directory
        """
        if not path.exists():
            raise PathNotFoundError(f"Path does not exist: {path}")
        if not path.is_dir():
            raise PathNotFoundError(f"Path is not a directory: {path}")

    def log_error_summary(self, errors: List[Union[Exception, str]], operation: str = "operation"):
        """
        Log a summary of errors that occurred during an operation.

        Args:
            errors: Exceptions or messages that occurred
            operation: Description of the operation
        """
        if not errors:
            return

        error_counts = {}
        for error in errors:
            error_type = type(error).__name__ if isinstance(error, Exception) else "IoError"
            error_counts[error_type] = error_counts.get(error_type, 0) + 1

        self.logger.warning(f"Error summary for {operation}:")
        for error_type, count in error_counts.items():
            self.logger.warning(f"  {error_type}: {count} occurrences")

        unique_messages = set()
        for error in errors[:10]:
            message = str(error)
            if message not in unique_messages:
                unique_messages.add(message)
                self.logger.warning(f"  Example: {message}")


def safe_path_operation(func: Callable) -> Callable:
    """
    Decorator that turns OSError from a per-file operation into IoError.

    The first str or Path positional argument is reported as the failing path.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except OSError as e:
            file_path = None
            for arg in args:
                if isinstance(arg, (str, Path)):
                    file_path = arg
                    break

            ErrorHandler().handle_file_system_error(e, file_path or "unknown")

    return wrapper

