from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .file_record import FileRecord


class FileNode(BaseModel):
    """Leaf of the extracted file tree."""

    type: Literal["file"] = "file"
    size: int
    mime_type: str
    last_modified: datetime


class DirectoryNode(BaseModel):
    """Directory of the extracted file tree, with aggregate counters."""

    type: Literal["directory"] = "directory"
    children: Dict[str, Union[DirectoryNode, FileNode]] = Field(default_factory=dict)
    file_count: int = 0
    total_size: int = 0


DirectoryNode.model_rebuild()

FileStructure = Dict[str, Union[DirectoryNode, FileNode]]


class FileSizeRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    size: int


class Statistics(BaseModel):
    """Aggregate numbers derived from the final list of file records."""

    model_config = ConfigDict(frozen=True)

    total_files: int = 0
    total_size: int = 0
    total_compressed_size: int = 0
    file_types: Dict[str, int] = Field(default_factory=dict)
    directories: List[str] = Field(default_factory=list)
    largest_file: Optional[FileSizeRef] = None
    smallest_file: Optional[FileSizeRef] = None
    average_file_size: int = 0
    compression_ratio: int = 0


class ExtractionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    folder_name: str
    files: List[FileRecord] = Field(default_factory=list)
    file_structure: FileStructure = Field(default_factory=dict)
    statistics: Statistics
    timestamp: datetime

    @property
    def file_count(self) -> int:
        return len(self.files)
