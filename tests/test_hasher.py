"""Tests for content hashing and duplicate grouping."""

import hashlib
from datetime import datetime, timezone
from pathlib import Path

import pytest

from conftest import write_file
from tidyfs.core.duplicates import find_duplicates
from tidyfs.core.exceptions import IoError, ScanCancelledError
from tidyfs.core.hasher import ContentHasher, select_candidates
from tidyfs.core.models import FileDescriptor, HashResult


def descriptor(path, size, stamp=0):
    return FileDescriptor(Path(path), size, datetime.fromtimestamp(stamp, tz=timezone.utc), None)


class TestContentHasher:
    """Streaming SHA-256 digests."""

    def setup_method(self):
        self.hasher = ContentHasher(max_workers=2)

    def test_digest_matches_sha256(self, tmp_path):
        path = write_file(tmp_path, "a.bin", b"0123456789")

        digest = self.hasher.digest(path)
        assert digest == hashlib.sha256(b"0123456789").digest()
        assert len(digest) == 32

    def test_digest_of_large_file_is_streamed(self, tmp_path):
        content = b"tidyfs" * (ContentHasher.BUFFER_SIZE // 3)
        path = write_file(tmp_path, "big.bin", content)

        assert self.hasher.digest(path) == hashlib.sha256(content).digest()

    def test_digest_of_empty_file(self, tmp_path):
        path = write_file(tmp_path, "empty", b"")
        assert self.hasher.digest(path) == hashlib.sha256(b"").digest()

    def test_missing_file_raises_io_error(self, tmp_path):
        with pytest.raises(IoError) as info:
            self.hasher.digest(tmp_path / "missing.bin")
        assert info.value.path == tmp_path / "missing.bin"

    def test_hash_files_sorted_with_errors(self, tmp_path):
        files = [
            FileDescriptor.create(write_file(tmp_path, "c.txt", "same")),
            FileDescriptor.create(write_file(tmp_path, "a.txt", "same")),
            descriptor(tmp_path / "b.txt", 4),
        ]

        results, errors = self.hasher.hash_files(files)

        assert [r.descriptor.path.name for r in results] == ["a.txt", "c.txt"]
        assert len(errors) == 1
        assert errors[0].path == tmp_path / "b.txt"

    def test_hash_files_empty(self):
        assert self.hasher.hash_files([]) == ([], [])

    def test_progress_callback(self, tmp_path):
        files = [FileDescriptor.create(write_file(tmp_path, f"{i}.txt", "x")) for i in range(3)]
        calls = []

        self.hasher.hash_files(files, lambda done, total: calls.append((done, total)))
        assert calls == [(1, 3), (2, 3), (3, 3)]

    def test_cancel_raises_scan_cancelled(self, tmp_path):
        files = [FileDescriptor.create(write_file(tmp_path, f"{i}.txt", "x")) for i in range(5)]

        with pytest.raises(ScanCancelledError):
            self.hasher.hash_files(files, lambda done, total: self.hasher.cancel())

    def test_cancel_before_hashing_starts_is_kept(self, tmp_path):
        files = [FileDescriptor.create(write_file(tmp_path, f"{i}.txt", "x")) for i in range(3)]
        calls = []
        self.hasher.cancel()

        with pytest.raises(ScanCancelledError):
            self.hasher.hash_files(files, lambda done, total: calls.append(done))
        assert calls == []


def test_select_candidates_keeps_shared_sizes():
    files = [
        descriptor("/d/b", 10),
        descriptor("/d/unique", 3),
        descriptor("/d/a", 10),
        descriptor("/d/e1", 0),
        descriptor("/d/e2", 0),
    ]

    selected = [str(d.path) for d in select_candidates(files)]
    assert selected == ["/d/e1", "/d/e2", "/d/a", "/d/b"]


class TestFindDuplicates:
    """Grouping by size and digest."""

    def test_groups_need_two_members(self):
        results = [
            HashResult(descriptor("/d/a", 5), b"\x01" * 32),
            HashResult(descriptor("/d/b", 5), b"\x02" * 32),
        ]
        assert find_duplicates(results) == []

    def test_group_members_sorted_by_path(self):
        results = [
            HashResult(descriptor("/d/z", 5), b"\x01" * 32),
            HashResult(descriptor("/d/a", 5), b"\x01" * 32),
            HashResult(descriptor("/d/m", 5), b"\x01" * 32),
        ]

        groups = find_duplicates(results)
        assert len(groups) == 1
        assert [str(f.path) for f in groups[0].files] == ["/d/a", "/d/m", "/d/z"]
        assert groups[0].wasted_bytes == 10

    def test_groups_ordered_by_wasted_bytes_then_digest(self):
        results = [
            HashResult(descriptor("/d/s1", 3), b"\x09" * 32),
            HashResult(descriptor("/d/s2", 3), b"\x09" * 32),
            HashResult(descriptor("/d/b1", 100), b"\x05" * 32),
            HashResult(descriptor("/d/b2", 100), b"\x05" * 32),
            HashResult(descriptor("/d/t1", 3), b"\x02" * 32),
            HashResult(descriptor("/d/t2", 3), b"\x02" * 32),
        ]

        groups = find_duplicates(results)
        assert [g.size for g in groups] == [100, 3, 3]
        assert groups[1].digest < groups[2].digest

    def test_same_digest_different_size_not_grouped(self):
        results = [
            HashResult(descriptor("/d/a", 5), b"\x01" * 32),
            HashResult(descriptor("/d/b", 6), b"\x01" * 32),
        ]
        assert find_duplicates(results) == []

    def test_duplicate_path_counted_once(self):
        result = HashResult(descriptor("/d/a", 5), b"\x01" * 32)
        assert find_duplicates([result, result]) == []

    def test_empty_files_form_group_wasting_nothing(self):
        empty = hashlib.sha256(b"").digest()
        groups = find_duplicates([
            HashResult(descriptor("/d/a", 0), empty),
            HashResult(descriptor("/d/b", 0), empty),
        ])
        assert len(groups) == 1
        assert groups[0].wasted_bytes == 0
