"""Archive name validation and repository name sanitization."""

from __future__ import annotations

import re
from typing import Iterable, Optional

from archive_publisher.services.pipeline_exceptions import PipelineValidationError
from archive_publisher.utils.files import dotted_extension

MAX_REPOSITORY_NAME_LENGTH = 100
DEFAULT_ALLOWED_EXTENSIONS = (".zip",)

_ARCHIVE_SUFFIX = re.compile(r"\.zip$", re.IGNORECASE)
_DISALLOWED = re.compile(r"[^a-zA-Z0-9_-]")
_DASH_RUNS = re.compile(r"-+")
_VALID_NAME = re.compile(r"^[a-z0-9_-]+$")


def sanitize_repository_name(raw_name: str) -> str:
    """
    Turn an archive file name into a repository identifier.

    "My Project (v2).zip" -> "my-project-v2". Applying it twice gives the
    same result as applying it once.

    Raises:
        PipelineValidationError: If nothing usable remains or the result is
            longer than 100 characters.
    """
    name = _ARCHIVE_SUFFIX.sub("", raw_name or "")
    name = _DISALLOWED.sub("-", name)
    name = _DASH_RUNS.sub("-", name)
    name = name.strip("-").lower()

    if not name:
        raise PipelineValidationError(
            f"Archive name {raw_name!r} does not yield a valid repository name"
        )
    if len(name) > MAX_REPOSITORY_NAME_LENGTH:
        raise PipelineValidationError(
            f"Repository name too long ({len(name)} > {MAX_REPOSITORY_NAME_LENGTH} characters)"
        )
    return name


def is_valid_repository_name(name: str) -> bool:
    return bool(name) and len(name) <= MAX_REPOSITORY_NAME_LENGTH and bool(
        _VALID_NAME.match(name)
    )


def validate_archive(
    file_name: str,
    size: int,
    max_size: int,
    allowed_extensions: Optional[Iterable[str]] = None,
) -> None:
    """
    Pre-flight checks on the declared archive.

    Raises:
        PipelineValidationError: On an oversized archive or an unaccepted extension.
    """
    if size > max_size:
        raise PipelineValidationError(
            f"Archive size exceeds limit: {size} > {max_size} bytes"
        )

    accepted = {ext.lower() for ext in (allowed_extensions or DEFAULT_ALLOWED_EXTENSIONS)}
    extension = dotted_extension(file_name or "")
    if extension not in accepted:
        raise PipelineValidationError(
            f"Unsupported archive type: {extension or '(none)'} "
            f"(accepted: {', '.join(sorted(accepted))})"
        )
