"""Grouping of hashed files into duplicate sets."""

from collections import defaultdict
from typing import Dict, Iterable, List, Tuple

from .models import DuplicateGroup, FileDescriptor, HashResult


def find_duplicates(hash_results: Iterable[HashResult]) -> List[DuplicateGroup]:
    """
    Group files by (size, digest) and return every group with two or more members.

    All results are consumed before any group is built. Groups are ordered by
    wasted bytes descending, then by digest, and members are ordered by path.
    """
    buckets: Dict[Tuple[int, bytes], List[FileDescriptor]] = defaultdict(list)
    seen = set()
    for result in hash_results:
        path = result.descriptor.path
        if path in seen:
            continue
        seen.add(path)
        buckets[(result.descriptor.size, result.digest)].append(result.descriptor)

    groups = [
        DuplicateGroup(
            digest=digest,
            size=size,
            files=tuple(sorted(members, key=lambda d: str(d.path))),
        )
        for (size, digest), members in buckets.items()
        if len(members) > 1
    ]
    groups.sort(key=lambda g: (-g.wasted_bytes, g.digest, g.size))
    return groups
