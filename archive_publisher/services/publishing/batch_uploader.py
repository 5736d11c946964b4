"""
Batched file publication.

Files are filtered, sorted by (directory, name) and cut into contiguous
batches. Batches run strictly one after another; the files of one batch are
uploaded in parallel by a thread pool that is joined before the next batch
starts. Every remote request goes through the run's RetryingCaller and its
shared RateLimiter.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from archive_publisher.entities import (
    FileRecord,
    PublicationResult,
    PublicationTally,
    PublishOptions,
    UploadOutcome,
    UploadStatus,
)
from archive_publisher.services.github.exceptions import GithubError, GithubNotFoundError
from archive_publisher.services.github.github_client import GitHubClient
from archive_publisher.services.github.retry import RetryingCaller
from archive_publisher.utils.files import dotted_extension

logger = logging.getLogger(__name__)


def filter_and_sort_files(
    files: Sequence[FileRecord],
    max_file_size: Optional[int] = None,
    allowed_extensions: Optional[Sequence[str]] = None,
) -> Tuple[List[FileRecord], List[UploadOutcome]]:
    """
    Apply the size/extension filters and sort what remains.

    Returns:
        (accepted files sorted by (directory, name), skipped outcomes in input order)
    """
    accepted: List[FileRecord] = []
    skipped: List[UploadOutcome] = []
    allowed = {ext.lower() for ext in allowed_extensions} if allowed_extensions else None

    for record in files:
        reason = None
        if max_file_size is not None and record.size > max_file_size:
            reason = f"size {record.size} exceeds limit {max_file_size}"
        elif allowed is not None and dotted_extension(record.name) not in allowed:
            reason = f"extension {dotted_extension(record.name) or '(none)'} not allowed"

        if reason:
            skipped.append(
                UploadOutcome(
                    path=record.path,
                    status=UploadStatus.SKIPPED,
                    size=record.size,
                    reason=reason,
                )
            )
        else:
            accepted.append(record)

    accepted.sort(key=lambda record: (record.directory, record.name))
    return accepted, skipped


def create_batches(files: Sequence[FileRecord], batch_size: int) -> List[List[FileRecord]]:
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")
    return [list(files[i : i + batch_size]) for i in range(0, len(files), batch_size)]


class BatchUploader:
    """Publishes file records into a repository through the contents API."""

    def __init__(
        self,
        client: GitHubClient,
        caller_factory: Callable[[PublishOptions], RetryingCaller] = RetryingCaller.from_options,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            client: GitHub REST client
            caller_factory: Builds the retrying caller (and its rate limiter) for a run
            sleep: Sleep between batches
        """
        self._client = client
        self._caller_factory = caller_factory
        self._sleep = sleep

    def publish(
        self,
        owner: str,
        repo: str,
        files: Sequence[FileRecord],
        options: PublishOptions,
        caller: Optional[RetryingCaller] = None,
    ) -> PublicationResult:
        """
        Upload every accepted file and aggregate the outcomes.

        A file that fails (even after all retries) is recorded as failed; it
        never stops its batch or the following batches. Without an explicit
        caller, one is built from `options`.
        """
        caller = caller or self._caller_factory(options)
        accepted, skipped = filter_and_sort_files(
            files, options.max_file_size, options.allowed_extensions
        )
        batches = create_batches(accepted, options.batch_size)
        tally = PublicationTally()

        logger.info(
            f"Uploading {len(accepted)} files to {owner}/{repo} in {len(batches)} batches "
            f"({len(skipped)} skipped by filters)"
        )

        for index, batch in enumerate(batches):
            logger.info(f"Processing batch {index + 1}/{len(batches)} ({len(batch)} files)")
            for outcome in self._upload_batch(owner, repo, batch, options, caller):
                tally.add(outcome)

            # Spread load between batches on top of the per-call limiter
            if index < len(batches) - 1 and options.rate_limit_delay > 0:
                self._sleep(options.rate_limit_delay)

        for outcome in skipped:
            tally.add(outcome)

        result = tally.freeze()
        logger.info(
            f"Upload finished: {result.success_count} succeeded, "
            f"{result.failed_count} failed, {result.skipped_count} skipped"
        )
        return result

    def _upload_batch(
        self,
        owner: str,
        repo: str,
        batch: List[FileRecord],
        options: PublishOptions,
        caller: RetryingCaller,
    ) -> List[UploadOutcome]:
        """Upload one batch in parallel; outcomes keep the batch order."""
        outcomes: List[Optional[UploadOutcome]] = [None] * len(batch)

        with ThreadPoolExecutor(max_workers=len(batch)) as executor:
            futures = {
                executor.submit(self._upload_one, owner, repo, record, options, caller): position
                for position, record in enumerate(batch)
            }

            for future in as_completed(futures):
                position = futures[future]
                try:
                    outcomes[position] = future.result()
                except Exception as e:
                    record = batch[position]
                    logger.error(f"Unexpected error uploading {record.path}: {e}")
                    outcomes[position] = UploadOutcome(
                        path=record.path, status=UploadStatus.FAILED, error=str(e)
                    )

        return [outcome for outcome in outcomes if outcome is not None]

    def _upload_one(
        self,
        owner: str,
        repo: str,
        record: FileRecord,
        options: PublishOptions,
        caller: RetryingCaller,
    ) -> UploadOutcome:
        try:
            self.upload_file(
                owner,
                repo,
                record,
                message=options.commit_message,
                check_existing=options.check_existing,
                branch=options.branch,
                caller=caller,
            )
        except GithubError as e:
            logger.error(f"  FAILED {record.path}: {e.message}")
            return UploadOutcome(
                path=record.path,
                status=UploadStatus.FAILED,
                size=record.size,
                error=e.message,
                status_code=e.status_code,
            )
        except Exception as e:
            logger.error(f"  FAILED {record.path}: {e}", exc_info=True)
            return UploadOutcome(
                path=record.path, status=UploadStatus.FAILED, size=record.size, error=str(e)
            )

        logger.info(f"  OK {record.path}")
        return UploadOutcome(path=record.path, status=UploadStatus.SUCCESS, size=record.size)

    def _existing_sha(
        self, owner: str, repo: str, path: str, branch: Optional[str] = None
    ) -> Optional[str]:
        """Identity token of the current remote version, or None if absent."""
        try:
            existing = self._client.get_content(owner, repo, path, ref=branch)
        except GithubNotFoundError:
            return None

        if isinstance(existing, dict):
            return existing.get("sha")
        return None

    def upload_file(
        self,
        owner: str,
        repo: str,
        record: FileRecord,
        message: Optional[str] = None,
        check_existing: bool = True,
        branch: Optional[str] = None,
        caller: Optional[RetryingCaller] = None,
    ) -> Dict[str, Any]:
        """
        Create or update a single file.

        With check_existing, the existing remote file's sha is looked up and
        attached so the PUT becomes an update instead of a conflicting create.
        Lookup and PUT are retried together: a PUT that was committed but
        answered with a transient error is retried as an update.
        """
        caller = caller or self._caller_factory(PublishOptions())

        def _lookup_and_put() -> Dict[str, Any]:
            sha = None
            if check_existing:
                sha = self._existing_sha(owner, repo, record.path, branch)
                # Second request of this attempt; the caller paced the first
                caller.rate_limiter.acquire()
            if sha:
                logger.info(f"Updating existing file: {record.path}")

            return self._client.put_content(
                owner,
                repo,
                record.path,
                content=record.content,
                message=message or f"Add {record.name}",
                branch=branch,
                sha=sha,
            )

        return caller.call(_lookup_and_put, description=f"upload {record.path}")
