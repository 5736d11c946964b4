"""
Shared enums for entities.

This module contains enums that are used across multiple entity files.
"""

from enum import Enum


class UploadStatus(str, Enum):
    """Terminal state of a single file in a publication run."""

    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"  # Excluded by the size/extension filter, never attempted


class PublicationState(str, Enum):
    """Publication state machine. Transitions only move forward."""

    VALIDATING = "validating"
    CREATING = "creating"
    AWAITING_READY = "awaiting_ready"
    UPLOADING = "uploading"
    SUMMARY_UPLOAD = "summary_upload"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (PublicationState.COMPLETED, PublicationState.FAILED)
