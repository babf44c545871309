"""Directory walking and the scan-classify-deduplicate pipeline."""

import os
import time
import logging
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Optional

from .classifier import ExtensionClassifier
from .duplicates import find_duplicates
from .error_handler import ErrorHandler
from .exceptions import ScanCancelledError
from .hasher import ContentHasher, select_candidates
from .models import FileDescriptor, ScanOptions, ScanResult
from .report import ReportAggregator


def is_ignored(name: str, ignore_patterns: Iterable[str]) -> bool:
    """True if any pattern occurs in the path component (substring match)."""
    return any(pattern and pattern in name for pattern in ignore_patterns)


class FileScanner:
    """Walks directory trees and builds storage reports."""

    def __init__(
        self,
        progress_callback: Optional[Callable[[str, int], None]] = None,
        config=None,
        classifier: Optional[ExtensionClassifier] = None,
    ):
        """
        Initialize the file scanner.

        Args:
            progress_callback: Optional callback called with (stage, count),
                               stage being "walk" or "hash".
            config: Optional configuration snapshot
            classifier: Optional classifier; built from config when omitted
        """
        # Import here to avoid circular imports
        from .config import get_config

        self.progress_callback = progress_callback
        self.config = config or get_config()
        self.classifier = classifier or ExtensionClassifier.from_config(self.config)
        self.error_handler = ErrorHandler()
        self.logger = logging.getLogger(__name__)
        self.walk_errors: List[str] = []
        self._cancelled = False
        self._hasher: Optional[ContentHasher] = None

    def walk(
        self,
        root: Path,
        recursive: bool = False,
        ignore_patterns: Optional[Iterable[str]] = None,
    ) -> Iterator[FileDescriptor]:
        """
        Enumerate regular files under root.

        The root is validated immediately; the returned iterator is lazy and
        single-use. Entries are visited in name order within each directory.

        Args:
            root: Directory to walk
            recursive: Descend into subdirectories
            ignore_patterns: Patterns matched against each path component
                below root; defaults to the configured patterns

        Returns:
            Iterator of FileDescriptor

        Raises:
            PathNotFoundError: If root is missing or not a directory
        """
        root = Path(root)
        self.error_handler.validate_root(root)
        if ignore_patterns is None:
            ignore_patterns = self.config.ignore_patterns
        self.walk_errors = []
        return self._walk(root, recursive, tuple(ignore_patterns))

    def _walk(self, root: Path, recursive: bool, ignore_patterns) -> Iterator[FileDescriptor]:
        pending = [root]
        while pending:
            if self._cancelled:
                self.logger.info("Scan cancelled, stopping directory walk")
                return

            directory = pending.pop()
            try:
                with os.scandir(directory) as it:
                    entries = sorted(it, key=lambda e: e.name)
            except OSError as e:
                self._record_walk_error(f"Could not read directory {directory}: {e}")
                continue

            subdirectories = []
            for entry in entries:
                if is_ignored(entry.name, ignore_patterns):
                    continue

                try:
                    if entry.is_symlink():
                        if not os.path.exists(entry.path):
                            self._record_walk_error(f"Broken symbolic link: {entry.path}")
                        else:
                            self.logger.debug(f"Not following symbolic link {entry.path}")
                        continue

                    if entry.is_dir(follow_symlinks=False):
                        if recursive:
                            subdirectories.append(Path(entry.path))
                        continue

                    if not entry.is_file(follow_symlinks=False):
                        continue

                    descriptor = FileDescriptor.create(Path(entry.path), entry.stat(follow_symlinks=False))
                except OSError as e:
                    self._record_walk_error(f"Could not access {entry.path}: {e}")
                    continue

                yield descriptor

            # Reversed so the first subdirectory by name is popped next.
            pending.extend(reversed(subdirectories))

    def _record_walk_error(self, message: str):
        self.walk_errors.append(message)
        self.logger.warning(message)

    def scan_directory(self, path: Path, options: ScanOptions) -> ScanResult:
        """
        Scan a directory and build its storage report.

        Args:
            path: Directory path to scan
            options: Scanning options

        Returns:
            ScanResult with the report and per-file errors

        Raises:
            PathNotFoundError: If path is missing or not a directory
        """
        start_time = time.time()
        self._cancelled = False

        files = self.walk(Path(path), options.recursive)
        aggregator = ReportAggregator()
        seen: List[FileDescriptor] = []
        hash_errors: List[str] = []
        duplicate_groups = None
        cancelled = False

        try:
            for descriptor in files:
                aggregator.add(descriptor, self.classifier.classify(descriptor.extension))
                if options.find_duplicates:
                    seen.append(descriptor)
                self._report_progress("walk", aggregator.total_files)

            if self._cancelled:
                raise ScanCancelledError("Scan was cancelled by user")

            if options.find_duplicates:
                candidates = select_candidates(seen)
                self.logger.info(f"Hashing {len(candidates)} of {len(seen)} files sharing a size")
                self._hasher = ContentHasher(max_workers=options.workers or self.config.hash_workers)
                # cancel_scan() may have run before the hasher existed
                if self._cancelled:
                    raise ScanCancelledError("Scan was cancelled by user")
                results, errors = self._hasher.hash_files(
                    candidates, lambda done, total: self._report_progress("hash", done)
                )
                hash_errors = [str(e) for e in errors]
                duplicate_groups = find_duplicates(results)

        except (KeyboardInterrupt, ScanCancelledError):
            cancelled = True
            self.logger.info("Scan cancelled by user")
        finally:
            self._hasher = None

        errors = self.walk_errors + hash_errors
        if errors and options.verbose:
            self.error_handler.log_error_summary(errors, "directory scan")

        report = aggregator.build(duplicate_groups)
        return ScanResult(report, errors, time.time() - start_time, cancelled)

    def _report_progress(self, stage: str, count: int):
        if self.progress_callback:
            try:
                self.progress_callback(stage, count)
            except Exception as e:
                self.logger.warning(f"Progress callback error: {e}")

    def cancel_scan(self):
        """Cancel the current scan operation."""
        self._cancelled = True
        if self._hasher is not None:
            self._hasher.cancel()
        self.logger.info("Scan cancellation requested")


def walk(root: Path, recursive: bool = False, ignore_patterns: Iterable[str] = ()) -> Iterator[FileDescriptor]:
    """Walk a directory tree with explicit ignore patterns and no configuration."""
    from .config import TidyConfig

    return FileScanner(config=TidyConfig(ignore_patterns=tuple(ignore_patterns))).walk(root, recursive)
