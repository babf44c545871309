"""Content hashing for duplicate detection."""

import hashlib
import logging
import threading
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .error_handler import safe_path_operation
from .exceptions import IoError, ScanCancelledError
from .models import FileDescriptor, HashResult


def select_candidates(files: Iterable[FileDescriptor]) -> List[FileDescriptor]:
    """
    Keep only files whose size is shared by at least one other file.

    A file with a unique size cannot have a duplicate, so it is never hashed.
    """
    by_size: Dict[int, List[FileDescriptor]] = defaultdict(list)
    for descriptor in files:
        by_size[descriptor.size].append(descriptor)

    candidates = []
    for size in sorted(by_size):
        bucket = by_size[size]
        if len(bucket) > 1:
            candidates.extend(sorted(bucket, key=lambda d: str(d.path)))
    return candidates


class ContentHasher:
    """Computes SHA-256 digests of file contents on a bounded thread pool."""

    BUFFER_SIZE = 65536  # 64KB buffer

    def __init__(self, max_workers: Optional[int] = None):
        """
        Initialize the hasher.

        Args:
            max_workers: Pool size. None lets ThreadPoolExecutor pick a default.
        """
        self.max_workers = max_workers
        self.logger = logging.getLogger(__name__)
        self._cancel_event = threading.Event()

    @safe_path_operation
    def digest(self, file_path: Path) -> bytes:
        """
        Compute the SHA-256 digest of a file, streaming it in chunks.

        Args:
            file_path: Path to the file

        Returns:
            32-byte binary digest

        Raises:
            IoError: If the file cannot be read
        """
        hasher = hashlib.sha256()
        with open(file_path, "rb") as f:
            for chunk in iter(lambda: f.read(self.BUFFER_SIZE), b""):
                hasher.update(chunk)
        return hasher.digest()

    def hash_files(
        self,
        files: Iterable[FileDescriptor],
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> Tuple[List[HashResult], List[IoError]]:
        """
        Hash files in parallel.

        Workers only read their own file and return an immutable HashResult;
        results are collected here and sorted by path, so completion order
        does not matter to callers.

        Args:
            files: Files to hash
            progress_callback: Called with (hashed_count, total_count)

        Returns:
            Tuple of (results sorted by path, per-file errors)

        Raises:
            ScanCancelledError: If cancel() was called or the user interrupted
        """
        files = list(files)
        results: List[HashResult] = []
        errors: List[IoError] = []
        if not files:
            return results, errors

        executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="tidyfs-hash")
        futures = {}
        try:
            for descriptor in files:
                if self._cancel_event.is_set():
                    break
                futures[executor.submit(self.digest, descriptor.path)] = descriptor

            done = 0
            for future in as_completed(futures):
                descriptor = futures[future]
                try:
                    results.append(HashResult(descriptor, future.result()))
                except IoError as e:
                    errors.append(e)
                    self.logger.warning(f"Could not hash {descriptor.path}: {e}")

                done += 1
                if progress_callback:
                    progress_callback(done, len(files))
                if self._cancel_event.is_set():
                    break
        except KeyboardInterrupt:
            self.logger.info("Hashing interrupted by user")
            self._cancel_event.set()
        finally:
            # Pending work is dropped; hashes already running finish on their own.
            executor.shutdown(wait=True, cancel_futures=True)

        if self._cancel_event.is_set():
            raise ScanCancelledError("Hashing was cancelled by user")

        results.sort(key=lambda r: str(r.descriptor.path))
        return results, errors

    def cancel(self):
        """Stop handing out new hashing work. A cancelled hasher stays cancelled."""
        self._cancel_event.set()
        self.logger.info("Hash cancellation requested")
