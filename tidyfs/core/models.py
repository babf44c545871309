"""Core data models and enums for TidyFS."""

import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import List, Optional, Dict, Any, Tuple


def extension_of(path: Path) -> Optional[str]:
    """Return the lowercase extension of a path without its dot, or None."""
    suffix = Path(path).suffix
    if not suffix or suffix == ".":
        return None
    return suffix[1:].lower()


@dataclass(frozen=True)
class FileDescriptor:
    """A regular file found by the directory walker."""
    path: Path
    size: int
    modified: datetime
    extension: Optional[str] = None

    @classmethod
    def create(cls, file_path: Path, stat_result: Optional[os.stat_result] = None) -> "FileDescriptor":
        """Create a FileDescriptor from a path, reusing a stat result when given."""
        if stat_result is None:
            stat_result = file_path.stat()
        return cls(
            path=Path(os.path.abspath(file_path)),
            size=stat_result.st_size,
            modified=datetime.fromtimestamp(stat_result.st_mtime, tz=timezone.utc),
            extension=extension_of(file_path),
        )

    @property
    def name(self) -> str:
        return self.path.name

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": str(self.path),
            "size": self.size,
            "modified": self.modified.isoformat(),
            "extension": self.extension,
        }


@dataclass(frozen=True)
class Category:
    """A named bucket of file extensions."""
    name: str
    extensions: Tuple[str, ...]


@dataclass(frozen=True)
class CategoryStat:
    """File count and total size for one category in a report."""
    name: str
    count: int
    size: int

    def percentage(self, total_size: int) -> float:
        """Share of the total size taken by this category, in percent."""
        if total_size == 0:
            return 0.0
        return self.size / total_size * 100

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "count": self.count, "size": self.size}


@dataclass(frozen=True)
class HashResult:
    """Digest computed for a single file by a hashing worker."""
    descriptor: FileDescriptor
    digest: bytes


@dataclass(frozen=True)
class DuplicateGroup:
    """Files sharing an identical size and content digest."""
    digest: bytes
    size: int
    files: Tuple[FileDescriptor, ...]

    @property
    def count(self) -> int:
        return len(self.files)

    @property
    def wasted_bytes(self) -> int:
        """Bytes taken by the redundant copies."""
        return self.size * (self.count - 1)

    @property
    def hexdigest(self) -> str:
        return self.digest.hex()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "digest": self.hexdigest,
            "size": self.size,
            "wasted_bytes": self.wasted_bytes,
            "files": [str(f.path) for f in self.files],
        }


@dataclass(frozen=True)
class Report:
    """Storage statistics for one scan."""
    total_files: int
    total_size: int
    categories: Tuple[CategoryStat, ...]
    largest_files: Tuple[FileDescriptor, ...]
    duplicate_groups: Optional[Tuple[DuplicateGroup, ...]] = None
    remaining_duplicate_groups: int = 0
    duplicate_group_count: int = 0
    duplicate_file_count: int = 0
    wasted_bytes: int = 0

    def category(self, name: str) -> Optional[CategoryStat]:
        """Look up a category row by name."""
        for stat in self.categories:
            if stat.name == name:
                return stat
        return None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "total_files": self.total_files,
            "total_size": self.total_size,
            "categories": [stat.to_dict() for stat in self.categories],
            "largest_files": [f.to_dict() for f in self.largest_files],
        }
        if self.duplicate_groups is not None:
            data["duplicates"] = {
                "group_count": self.duplicate_group_count,
                "duplicate_file_count": self.duplicate_file_count,
                "wasted_bytes": self.wasted_bytes,
                "groups": [group.to_dict() for group in self.duplicate_groups],
                "remaining_groups": self.remaining_duplicate_groups,
            }
        return data


@dataclass
class ScanOptions:
    """Options for directory scanning operations."""
    recursive: bool = False
    find_duplicates: bool = False
    verbose: bool = False
    workers: Optional[int] = None


@dataclass
class ScanResult:
    """Result of a directory scan operation."""
    report: Report
    errors: List[str]
    duration: float
    cancelled: bool = False

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def status(self) -> str:
        """One-line outcome of the scan."""
        if self.cancelled:
            return "aborted: scan cancelled by user"
        if self.errors:
            return f"succeeded with {self.error_count} file errors"
        return "fully succeeded"


class MoveOutcome(Enum):
    """What happened to a file during an organize run."""
    PLANNED = "planned"
    MOVED = "moved"
    SKIPPED = "skipped"
    ERROR = "error"


@dataclass
class MovePlanEntry:
    """Destination decision and outcome for one file."""
    source: Path
    destination_dir: Path
    destination: Path
    outcome: MoveOutcome = MoveOutcome.PLANNED
    error: Optional[str] = None
    renamed: bool = False


@dataclass
class MoveSummary:
    """Result of an organize operation."""
    entries: List[MovePlanEntry] = field(default_factory=list)
    dry_run: bool = False
    cancelled: bool = False
    # Errors outside the move step, e.g. unreadable directories during the walk
    walk_errors: List[str] = field(default_factory=list)

    def _count(self, outcome: MoveOutcome) -> int:
        return sum(1 for entry in self.entries if entry.outcome == outcome)

    @property
    def moved_count(self) -> int:
        return self._count(MoveOutcome.MOVED)

    @property
    def error_count(self) -> int:
        return self._count(MoveOutcome.ERROR) + len(self.walk_errors)

    @property
    def skipped_count(self) -> int:
        return self._count(MoveOutcome.SKIPPED)

    @property
    def planned_count(self) -> int:
        return self._count(MoveOutcome.PLANNED)

    @property
    def status(self) -> str:
        """One-line outcome of the organize run."""
        if self.cancelled:
            return "aborted: organize cancelled by user"
        if self.error_count:
            return f"succeeded with {self.error_count} file errors"
        return "fully succeeded"
