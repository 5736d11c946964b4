"""
Archive subsystem.

Purpose: Turn a ZIP upload into publishable file records without touching
the filesystem.

Responsibilities:
- Validate archive name, size and extension
- Derive the repository name
- Decode members into FileRecords (partial success on bad members)
- Build the file tree and aggregate statistics

Non-responsibilities:
- No content transformation
- No remote calls
"""

from .extractor import ArchiveExtractor
from .naming import (
    is_valid_repository_name,
    sanitize_repository_name,
    validate_archive,
)
from .statistics import build_file_structure, compute_statistics

__all__ = [
    "ArchiveExtractor",
    "build_file_structure",
    "compute_statistics",
    "is_valid_repository_name",
    "sanitize_repository_name",
    "validate_archive",
]
