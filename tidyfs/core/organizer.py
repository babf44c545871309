"""Planning and execution of file moves into an organized layout."""

import logging
import os
import shutil
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, Optional, Set

from .classifier import ExtensionClassifier
from .config import ORGANIZATION_METHODS
from .error_handler import safe_path_operation
from .exceptions import IoError
from .models import FileDescriptor, MoveOutcome, MovePlanEntry, MoveSummary

UNSORTED_DIR = "Unsorted"
NO_EXTENSION_DIR = "no_extension"
TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


def is_known_method(method: str) -> bool:
    return method in ORGANIZATION_METHODS


class FileOrganizer:
    """Moves files into subdirectories chosen by an organization method.

    Files are never overwritten or deleted: when a destination name is taken
    the incoming file gets a timestamp suffix, then a counter if needed.
    """

    def __init__(
        self,
        classifier: Optional[ExtensionClassifier] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the organizer.

        Args:
            classifier: Classifier used by the "type" method
            clock: Returns the current time used in collision suffixes
        """
        self.classifier = classifier or ExtensionClassifier()
        self.clock = clock or datetime.now
        self.logger = logging.getLogger(__name__)
        self._cancelled = False
        self._claimed: Set[Path] = set()
        self._vacated: Set[Path] = set()

    def destination_subdir(self, descriptor: FileDescriptor, method: str) -> str:
        """Name of the subdirectory a file belongs in for the given method."""
        if method == "type":
            return self.classifier.classify(descriptor.extension)
        if method == "date":
            return descriptor.modified.strftime("%Y-%m")
        if method == "ext":
            return descriptor.extension or NO_EXTENSION_DIR
        return UNSORTED_DIR

    def resolve_destination(self, source: Path, directory: Path) -> Path:
        """
        Pick a free destination path for source inside directory.

        A path is taken if it was claimed earlier in the same run, or if it
        exists on disk and is not a file this dry run already moved away.
        """
        candidate = directory / source.name
        if not self._is_taken(candidate):
            return candidate

        stem, suffix = _split_name(source.name)
        stamped = f"{stem}_{self.clock().strftime(TIMESTAMP_FORMAT)}"
        candidate = directory / f"{stamped}{suffix}"
        counter = 1
        while self._is_taken(candidate):
            candidate = directory / f"{stamped}_{counter}{suffix}"
            counter += 1
        return candidate

    def _is_taken(self, path: Path) -> bool:
        if path in self._claimed:
            return True
        return os.path.lexists(path) and path not in self._vacated

    def plan_and_execute(
        self,
        files: Iterable[FileDescriptor],
        method: str,
        target_root: Path,
        dry_run: bool = False,
    ) -> MoveSummary:
        """
        Work out a destination for every file and move it there.

        In dry-run mode the same decisions are made but nothing on disk changes.
        A failed move is recorded on its entry and the run continues.

        Args:
            files: Files to organize
            method: "type", "date" or "ext"; anything else goes to Unsorted
            target_root: Directory receiving the organized subdirectories
            dry_run: Only plan, never touch the filesystem

        Returns:
            MoveSummary with one entry per file
        """
        # Materialize first so files moved below are never walked again.
        files = list(files)
        target_root = Path(os.path.abspath(target_root))
        summary = MoveSummary(dry_run=dry_run)
        self._claimed = set()
        self._vacated = set()
        self._cancelled = False

        if not is_known_method(method):
            self.logger.warning(f"Unknown organization method '{method}', using '{UNSORTED_DIR}'")

        try:
            for descriptor in files:
                if self._cancelled:
                    summary.cancelled = True
                    break
                summary.entries.append(self._process(descriptor, method, target_root, dry_run))
        except KeyboardInterrupt:
            self.logger.info("Organize interrupted by user")
            summary.cancelled = True

        if not dry_run:
            self.logger.info(
                f"Organization complete: {summary.moved_count} moved, "
                f"{summary.skipped_count} skipped, {summary.error_count} errors"
            )
        return summary

    def _process(
        self,
        descriptor: FileDescriptor,
        method: str,
        target_root: Path,
        dry_run: bool,
    ) -> MovePlanEntry:
        source = descriptor.path
        directory = target_root / self.destination_subdir(descriptor, method)
        natural = directory / source.name

        if natural == source:
            self._claimed.add(source)
            return MovePlanEntry(source, directory, source, MoveOutcome.SKIPPED)

        destination = self.resolve_destination(source, directory)
        self._claimed.add(destination)
        entry = MovePlanEntry(source, directory, destination, renamed=destination != natural)

        if dry_run:
            self._vacated.add(source)
            self.logger.debug(f"Would move {source} to {destination}")
            return entry

        try:
            self._move(source, directory, destination)
        except IoError as e:
            entry.outcome = MoveOutcome.ERROR
            entry.error = str(e)
            return entry

        entry.outcome = MoveOutcome.MOVED
        self.logger.info(f"Moved {source} to {destination}")
        return entry

    @safe_path_operation
    def _move(self, source: Path, directory: Path, destination: Path):
        directory.mkdir(parents=True, exist_ok=True)
        shutil.move(str(source), str(destination))

    def cancel(self):
        """Stop before the next file; completed moves stay in place."""
        self._cancelled = True


def _split_name(name: str):
    """Split a file name into stem and final suffix ("a.tar.gz" -> "a.tar", ".gz")."""
    path = Path(name)
    return path.stem, path.suffix
