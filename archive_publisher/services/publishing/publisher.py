"""
Repository publication orchestrator.

Drives one run through the state machine

    VALIDATING -> CREATING -> AWAITING_READY -> UPLOADING
        -> (SUMMARY_UPLOAD) -> COMPLETED | FAILED

Fatal errors before UPLOADING end the run as FAILED with a structured
RunFailure. Per-file upload errors and summary upload errors never fail
the run.
"""

import logging
import time
from typing import Callable, List, Optional, Sequence

from archive_publisher.entities import (
    FileRecord,
    PublicationResult,
    PublicationRun,
    PublicationState,
    PublishOptions,
    RepositoryDescriptor,
    RunFailure,
)
from archive_publisher.services.archive.naming import sanitize_repository_name
from archive_publisher.services.github.exceptions import GithubNotFoundError
from archive_publisher.services.github.github_client import GitHubClient
from archive_publisher.services.github.retry import RetryingCaller
from archive_publisher.services.pipeline_exceptions import (
    PipelineTimeoutError,
    PipelineValidationError,
)
from archive_publisher.services.publishing.batch_uploader import BatchUploader
from archive_publisher.services.publishing.summary import (
    README_COMMIT_MESSAGE,
    build_readme_record,
)

logger = logging.getLogger(__name__)


class RepositoryPublisher:
    """Creates a repository and publishes file records into it."""

    def __init__(
        self,
        client: GitHubClient,
        uploader: BatchUploader,
        caller_factory: Callable[[PublishOptions], RetryingCaller] = RetryingCaller.from_options,
        owner: Optional[str] = None,
        organization: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            client: GitHub REST client
            uploader: Batch uploader for the file records
            caller_factory: Builds the retrying caller (and its rate limiter) for a run
            owner: Fallback owner login when the create response has none
            organization: Create repositories under this organization
            clock: Monotonic clock for elapsed time and readiness timeout
            sleep: Sleep between readiness polls
        """
        self._client = client
        self._uploader = uploader
        self._caller_factory = caller_factory
        self._owner = owner
        self._organization = organization
        self._clock = clock
        self._sleep = sleep

    def publish(
        self,
        folder_name: str,
        files: Sequence[FileRecord],
        options: PublishOptions,
    ) -> PublicationRun:
        started = self._clock()
        transitions: List[PublicationState] = []

        def enter(state: PublicationState) -> None:
            transitions.append(state)
            logger.info(f"[{folder_name}] -> {state.value}")

        enter(PublicationState.VALIDATING)
        logger.info(f"Publishing '{folder_name}' ({len(files)} files)")
        # One caller, and so one rate limiter, for every request of this run
        caller = self._caller_factory(options)

        try:
            repo_name = self._validate(folder_name, files)

            enter(PublicationState.CREATING)
            repository = self.create_repository(repo_name, options, caller)
            owner = repository.owner or self._owner
            if not owner:
                raise PipelineValidationError("Repository owner is unknown")
            logger.info(f"Created {repository.visibility} repository {repository.html_url}")

            enter(PublicationState.AWAITING_READY)
            self.wait_for_repository_ready(owner, repository.name, options, caller)
        except Exception as e:
            failed_in = transitions[-1]
            enter(PublicationState.FAILED)
            logger.error(f"Publication of '{folder_name}' failed in {failed_in.value}: {e}")
            return PublicationRun(
                success=False,
                state=PublicationState.FAILED,
                folder_name=folder_name,
                elapsed_seconds=self._clock() - started,
                message=f"Publication failed during {failed_in.value}: {e}",
                error=RunFailure.from_exception(e, state=failed_in),
                transitions=transitions,
            )

        if not options.branch:
            options = options.model_copy(update={"branch": repository.default_branch})

        enter(PublicationState.UPLOADING)
        upload_result = self._uploader.publish(owner, repository.name, files, options, caller=caller)

        summary_uploaded = False
        if options.create_readme:
            enter(PublicationState.SUMMARY_UPLOAD)
            summary_uploaded = self._upload_summary(owner, repository, files, options, caller)

        enter(PublicationState.COMPLETED)
        elapsed = self._clock() - started
        message = self._summary_line(repository, upload_result)
        logger.info(f"{message} in {elapsed:.2f}s")

        return PublicationRun(
            success=True,
            state=PublicationState.COMPLETED,
            folder_name=folder_name,
            repository=repository,
            upload_result=upload_result,
            summary_uploaded=summary_uploaded,
            elapsed_seconds=elapsed,
            message=message,
            transitions=transitions,
        )

    def _validate(self, folder_name: str, files: Sequence[FileRecord]) -> str:
        if not folder_name:
            raise PipelineValidationError("Folder name must not be empty")
        if not files:
            raise PipelineValidationError("File list must not be empty")
        return sanitize_repository_name(folder_name)

    def create_repository(
        self, name: str, options: PublishOptions, caller: Optional[RetryingCaller] = None
    ) -> RepositoryDescriptor:
        caller = caller or self._caller_factory(options)
        description = options.description or f"Automatically created from archive: {name}"
        payload = caller.call(
            lambda: self._client.create_repository(
                name,
                description=description,
                private=options.private,
                auto_init=True,
                organization=self._organization,
            ),
            description=f"create repository {name}",
        )
        return RepositoryDescriptor.from_api(payload)

    def wait_for_repository_ready(
        self,
        owner: str,
        repo: str,
        options: PublishOptions,
        caller: Optional[RetryingCaller] = None,
    ) -> int:
        """
        Poll the repository until it can be read.

        A 404 means "not created yet" and triggers another poll after
        readiness_poll_interval; any other error is fatal.

        Returns:
            Number of polls it took.

        Raises:
            PipelineTimeoutError: The repository was not ready within readiness_timeout.
        """
        caller = caller or self._caller_factory(options)
        logger.info(f"Waiting for {owner}/{repo} to become ready...")
        started = self._clock()
        polls = 0

        while self._clock() - started < options.readiness_timeout:
            polls += 1
            try:
                caller.call(
                    lambda: self._client.get_repository(owner, repo),
                    description=f"readiness check {owner}/{repo}",
                )
                logger.info(f"Repository {owner}/{repo} ready after {polls} polls")
                return polls
            except GithubNotFoundError:
                logger.debug(f"Repository {owner}/{repo} not found yet (poll {polls})")
                self._sleep(options.readiness_poll_interval)

        raise PipelineTimeoutError(
            f"Repository {owner}/{repo} not ready after {options.readiness_timeout}s "
            f"({polls} polls)"
        )

    def _upload_summary(
        self,
        owner: str,
        repository: RepositoryDescriptor,
        files: Sequence[FileRecord],
        options: PublishOptions,
        caller: RetryingCaller,
    ) -> bool:
        """Best effort: a failed README upload is logged and reported as False."""
        try:
            readme = build_readme_record(repository.name, files)
            self._uploader.upload_file(
                owner,
                repository.name,
                readme,
                message=README_COMMIT_MESSAGE,
                check_existing=True,
                branch=options.branch,
                caller=caller,
            )
        except Exception as e:
            logger.warning(f"README upload for {repository.full_name} failed: {e}")
            return False

        logger.info(f"README uploaded to {repository.full_name}")
        return True

    @staticmethod
    def _summary_line(repository: RepositoryDescriptor, result: PublicationResult) -> str:
        return (
            f"Created repository {repository.name} and uploaded "
            f"{result.success_count}/{result.attempted_count} files "
            f"({result.failed_count} failed, {result.skipped_count} skipped)"
        )
