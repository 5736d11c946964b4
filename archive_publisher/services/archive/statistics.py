"""
Derived views over extracted file records: the nested file tree and
aggregate statistics. Both are pure functions of the record list.
"""

import logging
import math
from typing import Dict, List, Optional, Sequence, Set

from archive_publisher.entities import (
    DirectoryNode,
    FileNode,
    FileRecord,
    FileSizeRef,
    FileStructure,
    Statistics,
)
from archive_publisher.utils.files import extension_key

logger = logging.getLogger(__name__)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def build_file_structure(files: Sequence[FileRecord]) -> FileStructure:
    """
    Build the nested directory tree for the given records.

    Every ancestor directory of a file gets its file_count and total_size
    incremented, so a directory's counters cover its whole subtree.
    """
    structure: FileStructure = {}

    for record in files:
        parts = record.path.split("/")
        level = structure
        ancestors: List[DirectoryNode] = []
        conflict = False

        for dir_name in parts[:-1]:
            node = level.get(dir_name)
            if node is None:
                node = DirectoryNode()
                level[dir_name] = node
            elif isinstance(node, FileNode):
                conflict = True
                break
            ancestors.append(node)
            level = node.children

        if conflict or isinstance(level.get(parts[-1]), DirectoryNode):
            logger.warning(f"Path {record.path} collides with an existing tree node, left out of tree")
            continue

        for node in ancestors:
            node.file_count += 1
            node.total_size += record.size

        level[parts[-1]] = FileNode(
            size=record.size,
            mime_type=record.mime_type,
            last_modified=record.last_modified,
        )

    return structure


def compute_statistics(files: Sequence[FileRecord]) -> Statistics:
    """Single pass over the records; deterministic for the same input order."""
    total_size = 0
    total_compressed_size = 0
    file_types: Dict[str, int] = {}
    directories: Set[str] = set()
    largest: Optional[FileSizeRef] = None
    smallest: Optional[FileSizeRef] = None

    for record in files:
        total_size += record.size
        total_compressed_size += record.compressed_size

        extension = extension_key(record.name)
        file_types[extension] = file_types.get(extension, 0) + 1

        if record.directory:
            directories.add(record.directory)

        if largest is None or record.size > largest.size:
            largest = FileSizeRef(name=record.name, size=record.size)
        if smallest is None or record.size < smallest.size:
            smallest = FileSizeRef(name=record.name, size=record.size)

    total_files = len(files)
    average = _round_half_up(total_size / total_files) if total_files else 0
    ratio = (
        _round_half_up((1 - total_compressed_size / total_size) * 100)
        if total_size
        else 0
    )

    return Statistics(
        total_files=total_files,
        total_size=total_size,
        total_compressed_size=total_compressed_size,
        file_types=file_types,
        directories=sorted(directories),
        largest_file=largest,
        smallest_file=smallest,
        average_file_size=average,
        compression_ratio=ratio,
    )
