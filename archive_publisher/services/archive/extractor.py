"""
ZIP archive extraction into in-memory file records.

Nothing is written to disk: every non-directory member becomes a
FileRecord carrying its base64 payload, and the record list is then used to
derive the file tree and the statistics.
"""

import io
import logging
import zipfile
import zlib
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Set

from archive_publisher.entities import ExtractionResult, FileRecord
from archive_publisher.services.archive.naming import (
    DEFAULT_ALLOWED_EXTENSIONS,
    sanitize_repository_name,
    validate_archive,
)
from archive_publisher.services.archive.statistics import (
    build_file_structure,
    compute_statistics,
)
from archive_publisher.services.pipeline_exceptions import ExtractionError

logger = logging.getLogger(__name__)

DEFAULT_MAX_ARCHIVE_SIZE = 100 * 1024 * 1024  # 100MB
PROGRESS_INTERVAL = 10

# Failures that only affect a single member; extraction continues without it.
ENTRY_ERRORS = (
    zipfile.BadZipFile,  # CRC mismatch, truncated member
    zlib.error,
    NotImplementedError,  # Unsupported compression method
    RuntimeError,  # Encrypted member without password
    EOFError,
    OSError,
)


def normalize_member_path(raw: str) -> Optional[str]:
    """
    Normalize an archive member name to a repository path.

    Returns None for names that cannot be published safely (empty,
    traversal segments).
    """
    path = raw.replace("\\", "/")
    while path.startswith("./"):
        path = path[2:]
    path = path.lstrip("/")
    if not path:
        return None

    segments = path.split("/")
    if any(segment in ("", ".", "..") for segment in segments):
        return None
    return path


def _member_timestamp(info: zipfile.ZipInfo, fallback: datetime) -> datetime:
    try:
        return datetime(*info.date_time, tzinfo=timezone.utc)
    except (TypeError, ValueError):
        return fallback


class ArchiveExtractor:
    """Decodes a ZIP archive into an ExtractionResult."""

    def __init__(
        self,
        max_archive_size: int = DEFAULT_MAX_ARCHIVE_SIZE,
        allowed_extensions: Optional[Iterable[str]] = None,
    ):
        self.max_archive_size = max_archive_size
        self.allowed_extensions = tuple(allowed_extensions or DEFAULT_ALLOWED_EXTENSIONS)

    def validate(self, file_name: str, size: int) -> None:
        validate_archive(file_name, size, self.max_archive_size, self.allowed_extensions)

    def extract(
        self,
        data: bytes,
        declared_name: str,
        declared_size: Optional[int] = None,
    ) -> ExtractionResult:
        """
        Extract every file of the archive.

        Args:
            data: Raw archive bytes
            declared_name: Original archive file name (used for the folder name)
            declared_size: Size announced by the caller; defaults to len(data)

        Raises:
            PipelineValidationError: Name, size or extension rejected.
            ExtractionError: The container cannot be opened.
        """
        self.validate(declared_name, len(data) if declared_size is None else declared_size)
        folder_name = sanitize_repository_name(declared_name)

        logger.info(f"Extracting archive {declared_name} into '{folder_name}'")
        extracted_at = datetime.now(timezone.utc)

        try:
            with zipfile.ZipFile(io.BytesIO(data)) as archive:
                files = self._extract_members(archive, extracted_at)
        except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError) as exc:
            raise ExtractionError(f"Cannot open archive {declared_name}: {exc}") from exc

        structure = build_file_structure(files)
        statistics = compute_statistics(files)

        logger.info(
            f"Extracted {len(files)} files from {declared_name} "
            f"({statistics.total_size} bytes, {len(statistics.directories)} directories)"
        )

        return ExtractionResult(
            folder_name=folder_name,
            files=files,
            file_structure=structure,
            statistics=statistics,
            timestamp=extracted_at,
        )

    def _extract_members(
        self, archive: zipfile.ZipFile, extracted_at: datetime
    ) -> List[FileRecord]:
        members = [info for info in archive.infolist() if not info.is_dir()]
        total = len(members)
        logger.info(f"Extracting {total} entries...")

        files: List[FileRecord] = []
        seen: Set[str] = set()

        for processed, info in enumerate(members, start=1):
            path = normalize_member_path(info.filename)
            if path is None:
                logger.warning(f"Skipping unsafe archive entry {info.filename!r}")
                continue
            if path in seen:
                logger.warning(f"Skipping duplicate archive entry {path}")
                continue

            try:
                payload = archive.read(info)
            except ENTRY_ERRORS as exc:
                logger.error(f"Failed to extract {info.filename}: {exc}")
                continue

            files.append(
                FileRecord.from_bytes(
                    path,
                    payload,
                    size=info.file_size,
                    compressed_size=info.compress_size,
                    last_modified=_member_timestamp(info, extracted_at),
                )
            )
            seen.add(path)

            if processed % PROGRESS_INTERVAL == 0 or processed == total:
                logger.info(f"Progress: {processed}/{total} entries processed")

        return files
