"""Tests for the directory walker and the scan pipeline."""

import os
from datetime import datetime, timezone
from pathlib import Path

import pytest

from conftest import write_file
from tidyfs.core.config import TidyConfig
from tidyfs.core.exceptions import PathNotFoundError
from tidyfs.core.models import ScanOptions
from tidyfs.core.scanner import FileScanner, is_ignored, walk


def names(descriptors):
    return [d.path.name for d in descriptors]


class TestWalk:
    """Enumeration of files under a root."""

    def test_non_recursive_lists_top_level_files_only(self, tmp_path):
        write_file(tmp_path, "b.txt", "b")
        write_file(tmp_path, "a.txt", "a")
        write_file(tmp_path, "sub/c.txt", "c")

        assert names(walk(tmp_path)) == ["a.txt", "b.txt"]

    def test_recursive_descends_in_name_order(self, tmp_path):
        write_file(tmp_path, "z.txt", "z")
        write_file(tmp_path, "sub/c.txt", "c")
        write_file(tmp_path, "sub/deeper/d.txt", "d")
        write_file(tmp_path, "another/e.txt", "e")

        assert sorted(names(walk(tmp_path, recursive=True))) == ["c.txt", "d.txt", "e.txt", "z.txt"]
        # Repeated walks produce the same sequence
        assert names(walk(tmp_path, recursive=True)) == names(walk(tmp_path, recursive=True))

    def test_ignored_directory_is_not_entered(self, tmp_path):
        write_file(tmp_path, "keep.txt", "k")
        write_file(tmp_path, ".git/config", "x")
        write_file(tmp_path, "project/node_modules/lib.js", "x")

        found = names(walk(tmp_path, recursive=True, ignore_patterns=[".git", "node_modules"]))
        assert found == ["keep.txt"]

    def test_ignore_pattern_is_substring_match(self, tmp_path):
        write_file(tmp_path, "build_output/a.txt", "a")
        write_file(tmp_path, "notes.tmp", "n")
        write_file(tmp_path, "notes.txt", "n")

        found = names(walk(tmp_path, recursive=True, ignore_patterns=["build", ".tmp"]))
        assert found == ["notes.txt"]

    def test_root_path_is_never_matched(self, tmp_path):
        root = tmp_path / "node_modules_backup"
        write_file(root, "a.txt", "a")

        assert names(walk(root, ignore_patterns=["node_modules"])) == ["a.txt"]

    def test_missing_root_raises_at_call_time(self, tmp_path):
        with pytest.raises(PathNotFoundError):
            walk(tmp_path / "missing")

    def test_file_root_raises(self, tmp_path):
        path = write_file(tmp_path, "a.txt", "a")
        with pytest.raises(PathNotFoundError):
            walk(path)

    def test_empty_directory_yields_nothing(self, tmp_path):
        assert list(walk(tmp_path, recursive=True)) == []

    def test_descriptor_fields(self, tmp_path):
        mtime = datetime(2023, 5, 17, 12, 0, 0)
        write_file(tmp_path, "Photo.JPG", b"12345", mtime=mtime)

        descriptor = next(walk(tmp_path))
        assert descriptor.path == tmp_path / "Photo.JPG"
        assert descriptor.path.is_absolute()
        assert descriptor.size == 5
        assert descriptor.extension == "jpg"
        assert descriptor.modified == mtime.replace(tzinfo=timezone.utc)

    def test_file_without_extension(self, tmp_path):
        write_file(tmp_path, "Makefile", "all:")
        assert next(walk(tmp_path)).extension is None

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unavailable")
    def test_symlinked_directory_is_not_followed(self, tmp_path):
        root = tmp_path / "root"
        outside = tmp_path / "outside"
        write_file(root, "a.txt", "a")
        write_file(outside, "secret.txt", "s")
        os.symlink(outside, root / "link", target_is_directory=True)

        assert names(walk(root, recursive=True)) == ["a.txt"]

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unavailable")
    def test_broken_symlink_is_recorded(self, tmp_path, config):
        write_file(tmp_path, "a.txt", "a")
        os.symlink(tmp_path / "gone.txt", tmp_path / "dangling.txt")

        scanner = FileScanner(config=config)
        assert names(scanner.walk(tmp_path)) == ["a.txt"]
        assert len(scanner.walk_errors) == 1
        assert "dangling.txt" in scanner.walk_errors[0]


def test_is_ignored():
    assert is_ignored(".git", [".git"])
    assert is_ignored("my_node_modules", ["node_modules"])
    assert not is_ignored("src", [".git", "node_modules"])
    assert not is_ignored("src", [""])


class TestScanDirectory:
    """The walk-classify-hash-report pipeline."""

    def setup_method(self):
        self.scanner = FileScanner(config=TidyConfig())

    def test_scenario_report(self, scenario_dir):
        result = self.scanner.scan_directory(scenario_dir, ScanOptions(find_duplicates=True))
        report = result.report

        assert not result.cancelled
        assert result.errors == []
        assert result.status == "fully succeeded"
        assert report.total_files == 4
        assert report.total_size == 45

        assert [(c.name, c.count, c.size) for c in report.categories] == [
            ("Images", 3, 40),
            ("Documents", 1, 5),
        ]

        assert len(report.duplicate_groups) == 1
        group = report.duplicate_groups[0]
        assert [f.path.name for f in group.files] == ["a.jpg", "a_copy.jpg"]
        assert group.size == 10
        assert group.wasted_bytes == 10
        assert report.wasted_bytes == 10
        assert report.duplicate_file_count == 1

    def test_largest_files_order(self, scenario_dir):
        report = self.scanner.scan_directory(scenario_dir, ScanOptions()).report
        assert names(report.largest_files) == ["b.png", "a.jpg", "a_copy.jpg", "c.txt"]

    def test_without_duplicate_detection(self, scenario_dir):
        report = self.scanner.scan_directory(scenario_dir, ScanOptions()).report
        assert report.duplicate_groups is None
        assert "duplicates" not in report.to_dict()

    def test_category_totals_match_report_totals(self, tmp_path):
        for index in range(12):
            write_file(tmp_path, f"dir{index % 3}/file{index}.{['txt', 'png', 'zip', 'bin'][index % 4]}", "x" * index)

        report = self.scanner.scan_directory(tmp_path, ScanOptions(recursive=True)).report
        assert sum(c.count for c in report.categories) == report.total_files == 12
        assert sum(c.size for c in report.categories) == report.total_size
        assert len(report.largest_files) == 5

    def test_repeated_scans_are_identical(self, scenario_dir):
        write_file(scenario_dir, "sub/x.png", b"abcdefghijklmnopqrst")
        options = ScanOptions(recursive=True, find_duplicates=True)

        first = self.scanner.scan_directory(scenario_dir, options).report
        second = FileScanner(config=TidyConfig()).scan_directory(scenario_dir, options).report

        assert first == second
        assert first.to_dict() == second.to_dict()

    def test_same_size_different_content_not_grouped(self, tmp_path):
        write_file(tmp_path, "one.txt", "aaaa")
        write_file(tmp_path, "two.txt", "bbbb")

        report = self.scanner.scan_directory(tmp_path, ScanOptions(find_duplicates=True)).report
        assert report.duplicate_groups == ()
        assert report.wasted_bytes == 0

    def test_ignored_files_are_excluded(self, tmp_path):
        write_file(tmp_path, "a.txt", "same")
        write_file(tmp_path, ".git/a.txt", "same")
        scanner = FileScanner(config=TidyConfig(ignore_patterns=(".git",)))

        report = scanner.scan_directory(tmp_path, ScanOptions(recursive=True, find_duplicates=True)).report
        assert report.total_files == 1
        assert report.duplicate_groups == ()

    def test_custom_category_from_config(self, tmp_path):
        write_file(tmp_path, "drawing.psd", "psd")
        scanner = FileScanner(config=TidyConfig(custom_categories={"Design": ("psd",)}))

        report = scanner.scan_directory(tmp_path, ScanOptions()).report
        assert report.category("Design").count == 1

    def test_missing_root_propagates(self, tmp_path):
        with pytest.raises(PathNotFoundError):
            self.scanner.scan_directory(tmp_path / "missing", ScanOptions())

    def test_progress_callback_receives_counts(self, scenario_dir):
        events = []
        scanner = FileScanner(progress_callback=lambda stage, count: events.append((stage, count)),
                              config=TidyConfig())
        scanner.scan_directory(scenario_dir, ScanOptions(find_duplicates=True))

        assert [count for stage, count in events if stage == "walk"] == [1, 2, 3, 4]
        assert [count for stage, count in events if stage == "hash"] == [1, 2]

    def test_cancel_during_walk(self, scenario_dir):
        scanner = FileScanner(config=TidyConfig())
        scanner.progress_callback = lambda stage, count: scanner.cancel_scan()

        result = scanner.scan_directory(scenario_dir, ScanOptions(find_duplicates=True))
        assert result.cancelled
        assert result.status == "aborted: scan cancelled by user"
        assert result.report.duplicate_groups is None

    def test_cancel_during_hashing(self, scenario_dir):
        write_file(scenario_dir, "b_copy.png", b"abcdefghijklmnopqrst")
        scanner = FileScanner(config=TidyConfig())

        def cancel_on_hash(stage, count):
            if stage == "hash":
                scanner.cancel_scan()

        scanner.progress_callback = cancel_on_hash
        result = scanner.scan_directory(scenario_dir, ScanOptions(find_duplicates=True, workers=1))

        assert result.cancelled
        assert result.status == "aborted: scan cancelled by user"
        assert result.report.duplicate_groups is None
        assert result.report.total_files == 5

    def test_file_vanishing_before_hashing(self, scenario_dir):
        scanner = FileScanner(config=TidyConfig())

        def delete_after_walk(stage, count):
            if stage == "walk" and count == 4:
                (scenario_dir / "a_copy.jpg").unlink()

        scanner.progress_callback = delete_after_walk
        result = scanner.scan_directory(scenario_dir, ScanOptions(find_duplicates=True))

        assert not result.cancelled
        assert result.error_count == 1
        assert "a_copy.jpg" in result.errors[0]
        assert result.status == "succeeded with 1 file errors"
        assert result.report.category("Images").count == 3
        assert result.report.total_files == 4
        assert result.report.duplicate_groups == ()

    def test_empty_directory(self, tmp_path):
        report = self.scanner.scan_directory(tmp_path, ScanOptions(find_duplicates=True)).report
        assert report.total_files == 0
        assert report.categories == ()
        assert report.duplicate_groups == ()
