from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .enums import PublicationState, UploadStatus
from .repository import RepositoryDescriptor


class UploadOutcome(BaseModel):
    """Terminal state of one file."""

    model_config = ConfigDict(frozen=True)

    path: str
    status: UploadStatus
    size: int = 0
    error: Optional[str] = None
    status_code: Optional[int] = None
    reason: Optional[str] = None  # Why a file was skipped

    @model_validator(mode="after")
    def _error_iff_failed(self) -> "UploadOutcome":
        if (self.status == UploadStatus.FAILED) != (self.error is not None):
            raise ValueError("error must be set exactly when status is 'failed'")
        return self


class PublicationResult(BaseModel):
    """Aggregated per-file outcomes of a publication run."""

    model_config = ConfigDict(frozen=True)

    success_count: int = 0
    failed_count: int = 0
    skipped_count: int = 0
    details: List[UploadOutcome] = Field(default_factory=list)
    total_size: int = 0  # Bytes successfully uploaded

    @property
    def attempted_count(self) -> int:
        return self.success_count + self.failed_count


class PublicationTally:
    """Mutable accumulator filled in as batches complete."""

    def __init__(self) -> None:
        self.success_count = 0
        self.failed_count = 0
        self.skipped_count = 0
        self.total_size = 0
        self.details: List[UploadOutcome] = []

    def add(self, outcome: UploadOutcome) -> None:
        if outcome.status == UploadStatus.SUCCESS:
            self.success_count += 1
            self.total_size += outcome.size
        elif outcome.status == UploadStatus.FAILED:
            self.failed_count += 1
        else:
            self.skipped_count += 1
        self.details.append(outcome)

    def freeze(self) -> PublicationResult:
        return PublicationResult(
            success_count=self.success_count,
            failed_count=self.failed_count,
            skipped_count=self.skipped_count,
            details=list(self.details),
            total_size=self.total_size,
        )


class RunFailure(BaseModel):
    """Structured description of a fatal run error."""

    model_config = ConfigDict(frozen=True)

    error_type: str
    message: str
    status_code: Optional[int] = None
    state: Optional[PublicationState] = None  # State in which the run failed

    @classmethod
    def from_exception(
        cls, exc: Exception, state: Optional[PublicationState] = None
    ) -> "RunFailure":
        return cls(
            error_type=type(exc).__name__,
            message=getattr(exc, "message", None) or str(exc),
            status_code=getattr(exc, "status_code", None),
            state=state,
        )


class PublicationRun(BaseModel):
    """Final aggregate returned by the orchestrator."""

    model_config = ConfigDict(frozen=True)

    success: bool
    state: PublicationState
    folder_name: str
    repository: Optional[RepositoryDescriptor] = None
    upload_result: Optional[PublicationResult] = None
    summary_uploaded: bool = False
    elapsed_seconds: float = 0.0
    message: str = ""
    error: Optional[RunFailure] = None
    transitions: List[PublicationState] = Field(default_factory=list)
