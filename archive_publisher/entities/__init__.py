from .enums import PublicationState, UploadStatus
from .extraction import (
    DirectoryNode,
    ExtractionResult,
    FileNode,
    FileSizeRef,
    FileStructure,
    Statistics,
)
from .file_record import FileRecord
from .options import PublishOptions
from .publication import (
    PublicationResult,
    PublicationRun,
    PublicationTally,
    RunFailure,
    UploadOutcome,
)
from .repository import RepositoryDescriptor
from .workflow import (
    ArchiveInput,
    BytesInput,
    ConnectionCheck,
    EncodedInput,
    ExtractionSummary,
    PathInput,
    WorkflowResult,
)

__all__ = [
    "ArchiveInput",
    "BytesInput",
    "ConnectionCheck",
    "DirectoryNode",
    "EncodedInput",
    "ExtractionResult",
    "ExtractionSummary",
    "FileNode",
    "FileRecord",
    "FileSizeRef",
    "FileStructure",
    "PathInput",
    "PublicationResult",
    "PublicationRun",
    "PublicationState",
    "PublicationTally",
    "PublishOptions",
    "RepositoryDescriptor",
    "RunFailure",
    "Statistics",
    "UploadOutcome",
    "UploadStatus",
    "WorkflowResult",
]
