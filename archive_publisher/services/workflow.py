"""
Archive-to-repository workflow.

Entry point for callers that hold an archive (path, raw bytes or an
encoded payload with its name) and want it published as a repository.
"""

import base64
import binascii
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from pydantic import TypeAdapter, ValidationError

from archive_publisher.config import Settings, settings
from archive_publisher.entities import (
    ArchiveInput,
    BytesInput,
    ConnectionCheck,
    EncodedInput,
    ExtractionSummary,
    PathInput,
    PublishOptions,
    RunFailure,
    WorkflowResult,
)
from archive_publisher.services.archive.extractor import ArchiveExtractor
from archive_publisher.services.github.exceptions import GithubError
from archive_publisher.services.github.github_client import GitHubClient
from archive_publisher.services.pipeline_exceptions import (
    PipelineError,
    PipelineValidationError,
)
from archive_publisher.services.publishing.batch_uploader import BatchUploader
from archive_publisher.services.publishing.publisher import RepositoryPublisher

logger = logging.getLogger(__name__)

_archive_input_adapter = TypeAdapter(ArchiveInput)

RawArchiveInput = Union[PathInput, BytesInput, EncodedInput, str, Path, bytes, Dict[str, Any]]


def coerce_archive_input(value: RawArchiveInput) -> Union[PathInput, BytesInput, EncodedInput]:
    """Map loose caller values onto one of the three tagged input forms."""
    if isinstance(value, (PathInput, BytesInput, EncodedInput)):
        return value
    if isinstance(value, (str, Path)):
        return PathInput(path=Path(value))
    if isinstance(value, (bytes, bytearray)):
        return BytesInput(data=bytes(value))
    if isinstance(value, dict):
        try:
            return _archive_input_adapter.validate_python(value)
        except ValidationError as exc:
            raise PipelineValidationError(f"Invalid archive input: {exc}") from exc
    raise PipelineValidationError(f"Unsupported archive input type: {type(value).__name__}")


def prepare_archive(archive_input: RawArchiveInput) -> Tuple[bytes, str]:
    """
    Normalize an archive input into (bytes, file name).

    Raises:
        PipelineValidationError: The input cannot be read or decoded.
    """
    source = coerce_archive_input(archive_input)

    if isinstance(source, PathInput):
        logger.info(f"Reading archive {source.path}")
        try:
            return source.path.read_bytes(), source.path.name
        except OSError as exc:
            raise PipelineValidationError(f"Cannot read archive {source.path}: {exc}") from exc

    if isinstance(source, BytesInput):
        return source.data, source.file_name

    if isinstance(source.data, bytes):
        return source.data, source.file_name
    try:
        return base64.b64decode(source.data, validate=True), source.file_name
    except (binascii.Error, ValueError) as exc:
        raise PipelineValidationError(
            f"Archive payload for {source.file_name} is not valid base64"
        ) from exc


class ArchiveWorkflow:
    """Validates, extracts and publishes one archive per run() call."""

    def __init__(
        self,
        extractor: ArchiveExtractor,
        publisher: RepositoryPublisher,
        client: GitHubClient,
        options: PublishOptions,
        owner: Optional[str] = None,
    ):
        self.extractor = extractor
        self.publisher = publisher
        self.client = client
        self.options = options
        self.owner = owner

    def run(self, archive_input: RawArchiveInput) -> WorkflowResult:
        started = time.monotonic()
        file_name: Optional[str] = None
        logger.info("Starting archive workflow...")

        try:
            data, file_name = prepare_archive(archive_input)
            logger.info(f"Processing archive: {file_name}")
            extraction = self.extractor.extract(data, file_name)
        except PipelineError as e:
            logger.error(f"Workflow failed before publication: {e}")
            return WorkflowResult(
                success=False,
                file_name=file_name,
                elapsed_seconds=time.monotonic() - started,
                error=RunFailure.from_exception(e),
                timestamp=datetime.now(timezone.utc),
            )

        logger.info(f"Extraction finished: {extraction.file_count} files")
        summary = ExtractionSummary(
            folder_name=extraction.folder_name,
            file_count=extraction.file_count,
            statistics=extraction.statistics,
            paths=[record.path for record in extraction.files],
            timestamp=extraction.timestamp,
        )

        publication = self.publisher.publish(extraction.folder_name, extraction.files, self.options)
        elapsed = time.monotonic() - started

        if not publication.success:
            logger.error(f"Workflow failed: {publication.message}")
            return WorkflowResult(
                success=False,
                file_name=file_name,
                folder_name=extraction.folder_name,
                file_count=extraction.file_count,
                elapsed_seconds=elapsed,
                error=publication.error,
                extraction=summary,
                publication=publication,
                timestamp=datetime.now(timezone.utc),
            )

        upload = publication.upload_result
        logger.info(
            f"Workflow finished in {elapsed:.2f}s: "
            f"{upload.success_count}/{extraction.file_count} files uploaded"
        )
        return WorkflowResult(
            success=True,
            file_name=file_name,
            folder_name=extraction.folder_name,
            file_count=extraction.file_count,
            repository_url=publication.repository.html_url,
            uploaded_files=upload.success_count,
            failed_files=upload.failed_count,
            elapsed_seconds=elapsed,
            extraction=summary,
            publication=publication,
            timestamp=datetime.now(timezone.utc),
        )

    def test_connection(self) -> ConnectionCheck:
        """Check that the configured token can reach the API."""
        logger.info("Testing GitHub connection...")
        try:
            user = self.client.get_authenticated_user()
        except GithubError as e:
            logger.error(f"GitHub connection failed: {e.message}")
            return ConnectionCheck(github=False, errors=[f"GitHub connection failed: {e.message}"])

        logger.info("GitHub connection OK")
        return ConnectionCheck(github=True, login=user.get("login"))

    def describe_configuration(self) -> Dict[str, Any]:
        """Effective configuration with the token redacted."""
        return {
            "owner": self.owner,
            "github_token": self.client.token_hint,
            "max_archive_size": self.extractor.max_archive_size,
            "allowed_archive_extensions": list(self.extractor.allowed_extensions),
            **self.options.model_dump(),
        }


def create_workflow(config: Optional[Settings] = None, **option_overrides: Any) -> ArchiveWorkflow:
    """Wire a workflow from application settings."""
    config = config or settings
    options = PublishOptions.from_settings(config, **option_overrides)

    client = GitHubClient.from_settings(config)
    uploader = BatchUploader(client)
    publisher = RepositoryPublisher(
        client,
        uploader,
        owner=config.GITHUB_OWNER,
        organization=config.GITHUB_ORGANIZATION,
    )
    extractor = ArchiveExtractor(
        max_archive_size=config.archive_max_size_bytes,
        allowed_extensions=config.ARCHIVE_ALLOWED_EXTENSIONS,
    )
    return ArchiveWorkflow(extractor, publisher, client, options, owner=config.GITHUB_OWNER)
