"""Aggregation of scanned files into a storage report."""

from typing import Dict, List, Optional, Sequence

from .models import CategoryStat, DuplicateGroup, FileDescriptor, Report

TOP_N = 5


class ReportAggregator:
    """Accumulates per-category statistics for a single scan.

    Only the scanning thread calls add(); hashing workers never touch the
    accumulators.
    """

    def __init__(self, top_n: int = TOP_N):
        self.top_n = top_n
        self._counts: Dict[str, int] = {}
        self._sizes: Dict[str, int] = {}
        self._files: List[FileDescriptor] = []
        self.total_files = 0
        self.total_size = 0

    def add(self, descriptor: FileDescriptor, category: str) -> None:
        """Count one file toward its category and the totals."""
        self._counts[category] = self._counts.get(category, 0) + 1
        self._sizes[category] = self._sizes.get(category, 0) + descriptor.size
        self._files.append(descriptor)
        self.total_files += 1
        self.total_size += descriptor.size

    def build(self, duplicate_groups: Optional[Sequence[DuplicateGroup]] = None) -> Report:
        """
        Produce the report.

        Args:
            duplicate_groups: Groups from the duplicate grouper, or None when
                duplicate detection was not requested

        Returns:
            Report with deterministically ordered rows
        """
        categories = sorted(
            (CategoryStat(name, self._counts[name], self._sizes[name]) for name in self._counts),
            key=lambda stat: (-stat.size, stat.name),
        )
        largest = sorted(self._files, key=lambda d: (-d.size, str(d.path)))[:self.top_n]

        if duplicate_groups is None:
            return Report(
                total_files=self.total_files,
                total_size=self.total_size,
                categories=tuple(categories),
                largest_files=tuple(largest),
            )

        ordered = sorted(duplicate_groups, key=lambda g: (-g.wasted_bytes, g.digest, g.size))
        return Report(
            total_files=self.total_files,
            total_size=self.total_size,
            categories=tuple(categories),
            largest_files=tuple(largest),
            duplicate_groups=tuple(ordered[:self.top_n]),
            remaining_duplicate_groups=max(0, len(ordered) - self.top_n),
            duplicate_group_count=len(ordered),
            duplicate_file_count=sum(g.count - 1 for g in ordered),
            wasted_bytes=sum(g.wasted_bytes for g in ordered),
        )
