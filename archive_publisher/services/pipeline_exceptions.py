"""Custom exceptions for the ingestion and publication pipeline."""
from __future__ import annotations


class PipelineError(Exception):
    """Base exception for pipeline failures."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class PipelineValidationError(PipelineError):
    """Raised when the archive or publication input fails pre-flight checks."""


class ExtractionError(PipelineError):
    """Raised when the archive container itself cannot be opened."""


class PipelineTimeoutError(PipelineError, TimeoutError):
    """Raised when a bounded wait (e.g. repository readiness) runs out of time."""
