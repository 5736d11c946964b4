from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from archive_publisher.utils.files import (
    DEFAULT_MIME_TYPE,
    compute_checksum,
    detect_mime_type,
    encode_content,
    split_path,
)


class FileRecord(BaseModel):
    """One file extracted from an archive. Read-only once created."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., description="Slash-separated, archive-relative path")
    name: str
    content: str = Field(..., description="Base64 encoded payload")
    size: int = Field(0, ge=0, description="Declared uncompressed size in bytes")
    compressed_size: int = Field(0, ge=0)
    directory: str = ""
    mime_type: str = DEFAULT_MIME_TYPE
    last_modified: datetime
    checksum: str

    @field_validator("path")
    @classmethod
    def _path_not_empty(cls, value: str) -> str:
        if not value or not value.strip("/"):
            raise ValueError("File path must not be empty")
        return value

    @classmethod
    def from_bytes(
        cls,
        path: str,
        data: bytes,
        size: Optional[int] = None,
        compressed_size: Optional[int] = None,
        last_modified: Optional[datetime] = None,
    ) -> "FileRecord":
        directory, name = split_path(path)
        return cls(
            path=path,
            name=name,
            content=encode_content(data),
            size=len(data) if size is None else size,
            compressed_size=len(data) if compressed_size is None else compressed_size,
            directory=directory,
            mime_type=detect_mime_type(path),
            last_modified=last_modified or datetime.now(timezone.utc),
            checksum=compute_checksum(data),
        )
