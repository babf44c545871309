"""TidyFS - scan, deduplicate and organize local directory trees."""

__version__ = "0.1.0"
__description__ = "A smart file system organizer and analyzer"

# Import main components for programmatic access
from .core.models import FileDescriptor, Report, ScanOptions, MoveSummary
from .core.classifier import ExtensionClassifier
from .core.scanner import FileScanner
from .core.organizer import FileOrganizer
from .cli.main import cli

__all__ = [
    "FileDescriptor",
    "Report",
    "ScanOptions",
    "MoveSummary",
    "ExtensionClassifier",
    "FileScanner",
    "FileOrganizer",
    "cli"
]
