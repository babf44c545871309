"""Core engine: walking, classification, hashing, reporting and moving files."""

from .models import (
    FileDescriptor, CategoryStat, DuplicateGroup, Report, ScanOptions, ScanResult,
    MoveOutcome, MovePlanEntry, MoveSummary
)
from .classifier import ExtensionClassifier
from .scanner import FileScanner, walk
from .hasher import ContentHasher
from .duplicates import find_duplicates
from .report import ReportAggregator
from .organizer import FileOrganizer

__all__ = [
    "FileDescriptor",
    "CategoryStat",
    "DuplicateGroup",
    "Report",
    "ScanOptions",
    "ScanResult",
    "MoveOutcome",
    "MovePlanEntry",
    "MoveSummary",
    "ExtensionClassifier",
    "FileScanner",
    "walk",
    "ContentHasher",
    "find_duplicates",
    "ReportAggregator",
    "FileOrganizer"
]
