from datetime import datetime
from pathlib import Path
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .extraction import Statistics
from .publication import PublicationRun, RunFailure


class PathInput(BaseModel):
    """Archive read from the local filesystem."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["path"] = "path"
    path: Path


class BytesInput(BaseModel):
    """Raw archive bytes without a known file name."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["bytes"] = "bytes"
    data: bytes
    file_name: str = "archive.zip"


class EncodedInput(BaseModel):
    """Archive payload with its file name; `data` may be base64 text or bytes."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["encoded"] = "encoded"
    data: Union[bytes, str]
    file_name: str


ArchiveInput = Annotated[
    Union[PathInput, BytesInput, EncodedInput], Field(discriminator="kind")
]


class ExtractionSummary(BaseModel):
    """Extraction facts worth returning to the caller (payloads omitted)."""

    model_config = ConfigDict(frozen=True)

    folder_name: str
    file_count: int
    statistics: Statistics
    paths: List[str] = Field(default_factory=list)
    timestamp: datetime


class WorkflowResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool
    file_name: Optional[str] = None
    folder_name: Optional[str] = None
    file_count: int = 0
    repository_url: Optional[str] = None
    uploaded_files: int = 0
    failed_files: int = 0
    elapsed_seconds: float = 0.0
    error: Optional[RunFailure] = None
    extraction: Optional[ExtractionSummary] = None
    publication: Optional[PublicationRun] = None
    timestamp: datetime


class ConnectionCheck(BaseModel):
    model_config = ConfigDict(frozen=True)

    github: bool = False
    login: Optional[str] = None
    errors: List[str] = Field(default_factory=list)

    @property
    def overall(self) -> bool:
        return self.github
