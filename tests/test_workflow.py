"""Tests for the archive-to-repository workflow."""

import base64
from functools import partial
from unittest.mock import MagicMock

import pytest

from archive_publisher.config import Settings
from archive_publisher.entities import (
    BytesInput,
    EncodedInput,
    PathInput,
    PublicationState,
    PublishOptions,
)
from archive_publisher.services.archive.extractor import ArchiveExtractor
from archive_publisher.services.github.exceptions import GithubAuthError, GithubNotFoundError
from archive_publisher.services.github.retry import RetryingCaller
from archive_publisher.services.pipeline_exceptions import PipelineValidationError
from archive_publisher.services.publishing.batch_uploader import BatchUploader
from archive_publisher.services.publishing.publisher import RepositoryPublisher
from archive_publisher.services.workflow import (
    ArchiveWorkflow,
    coerce_archive_input,
    create_workflow,
    prepare_archive,
)

REPO_PAYLOAD = {
    "id": 7,
    "name": "my-project",
    "full_name": "octo/my-project",
    "owner": {"login": "octo"},
    "html_url": "https://github.com/octo/my-project",
    "default_branch": "main",
}

PROJECT_FILES = {
    "src/main.py": b"print('hello')\n",
    "src/utils/helpers.py": b"def helper():\n    return 42\n",
    "README_source.md": b"# My Project\n",
}


def _workflow(client, fake_clock, **option_overrides):
    options = PublishOptions(rate_limit_delay=0, **option_overrides)
    caller_factory = partial(RetryingCaller.from_options, sleep=lambda _: None)
    uploader = BatchUploader(client, caller_factory, sleep=lambda _: None)
    publisher = RepositoryPublisher(
        client, uploader, caller_factory, clock=fake_clock, sleep=fake_clock.sleep
    )
    return ArchiveWorkflow(ArchiveExtractor(), publisher, client, options, owner="octo")


def _fake_client():
    client = MagicMock()
    client.token_hint = "ghp_test..."
    client.create_repository.return_value = REPO_PAYLOAD
    client.get_repository.return_value = REPO_PAYLOAD
    client.get_content.side_effect = GithubNotFoundError("Not Found", 404)
    client.put_content.return_value = {}
    return client


class TestPrepareArchive:
    """Tests for archive input normalization."""

    def test_path_input(self, tmp_path):
        archive = tmp_path / "My Project.zip"
        archive.write_bytes(b"zip-bytes")

        assert prepare_archive(PathInput(path=archive)) == (b"zip-bytes", "My Project.zip")
        assert prepare_archive(str(archive)) == (b"zip-bytes", "My Project.zip")

    def test_missing_path(self, tmp_path):
        with pytest.raises(PipelineValidationError):
            prepare_archive(tmp_path / "missing.zip")

    def test_bytes_input(self):
        assert prepare_archive(BytesInput(data=b"abc")) == (b"abc", "archive.zip")
        assert prepare_archive(b"abc") == (b"abc", "archive.zip")

    def test_encoded_input(self):
        encoded = base64.b64encode(b"abc").decode("ascii")

        assert prepare_archive(EncodedInput(data=encoded, file_name="x.zip")) == (b"abc", "x.zip")

    def test_encoded_input_with_raw_bytes(self):
        assert prepare_archive(EncodedInput(data=b"abc", file_name="x.zip")) == (b"abc", "x.zip")

    def test_invalid_base64(self):
        with pytest.raises(PipelineValidationError, match="not valid base64"):
            prepare_archive(EncodedInput(data="%%%not-base64%%%", file_name="x.zip"))

    def test_dict_input_is_discriminated_by_kind(self):
        source = coerce_archive_input({"kind": "encoded", "data": "YWJj", "file_name": "x.zip"})

        assert isinstance(source, EncodedInput)

    def test_unsupported_input(self):
        with pytest.raises(PipelineValidationError):
            coerce_archive_input(12345)


class TestArchiveWorkflow:
    """Tests for ArchiveWorkflow.run."""

    def test_end_to_end(self, make_zip, fake_clock):
        client = _fake_client()
        workflow = _workflow(client, fake_clock)

        result = workflow.run(BytesInput(data=make_zip(PROJECT_FILES), file_name="My Project.zip"))

        assert result.success is True
        assert result.file_name == "My Project.zip"
        assert result.folder_name == "my-project"
        assert result.file_count == 3
        assert result.uploaded_files == 3
        assert result.failed_files == 0
        assert result.repository_url == "https://github.com/octo/my-project"
        assert result.extraction.paths == list(PROJECT_FILES)
        assert result.publication.state == PublicationState.COMPLETED
        # Three files plus the generated README
        assert client.put_content.call_count == 4

    def test_invalid_archive_never_reaches_github(self, fake_clock):
        client = _fake_client()
        workflow = _workflow(client, fake_clock)

        result = workflow.run(BytesInput(data=b"not a zip", file_name="broken.zip"))

        assert result.success is False
        assert result.error.error_type == "ExtractionError"
        client.create_repository.assert_not_called()

    def test_wrong_extension(self, fake_clock):
        workflow = _workflow(_fake_client(), fake_clock)

        result = workflow.run(BytesInput(data=b"whatever", file_name="notes.txt"))

        assert result.success is False
        assert result.error.error_type == "PipelineValidationError"

    def test_empty_archive_fails_publication(self, make_zip, fake_clock):
        client = _fake_client()
        workflow = _workflow(client, fake_clock)

        result = workflow.run(BytesInput(data=make_zip({}), file_name="empty.zip"))

        assert result.success is False
        assert result.error.state == PublicationState.VALIDATING
        assert result.publication.state == PublicationState.FAILED
        client.create_repository.assert_not_called()

    def test_publication_failure_is_reported(self, make_zip, fake_clock):
        client = _fake_client()
        client.create_repository.side_effect = GithubAuthError("Bad credentials", 401)
        workflow = _workflow(client, fake_clock)

        result = workflow.run(BytesInput(data=make_zip(PROJECT_FILES), file_name="My Project.zip"))

        assert result.success is False
        assert result.error.status_code == 401
        assert result.file_count == 3
        assert result.repository_url is None


class TestConnectionAndConfiguration:
    def test_connection_ok(self, fake_clock):
        client = _fake_client()
        client.get_authenticated_user.return_value = {"login": "octo"}

        check = _workflow(client, fake_clock).test_connection()

        assert check.overall is True
        assert check.login == "octo"
        assert check.errors == []

    def test_connection_failure(self, fake_clock):
        client = _fake_client()
        client.get_authenticated_user.side_effect = GithubAuthError("Bad credentials", 401)

        check = _workflow(client, fake_clock).test_connection()

        assert check.overall is False
        assert "Bad credentials" in check.errors[0]

    def test_describe_configuration_redacts_token(self, fake_clock):
        config = _workflow(_fake_client(), fake_clock, batch_size=5).describe_configuration()

        assert config["github_token"] == "ghp_test..."
        assert config["batch_size"] == 5
        assert config["owner"] == "octo"
        assert config["allowed_archive_extensions"] == [".zip"]


class TestCreateWorkflow:
    def test_wires_from_settings(self):
        config = Settings(
            GITHUB_TOKEN="ghp_fromsettings123",
            GITHUB_OWNER="acme-bot",
            PUBLISH_BATCH_SIZE=4,
            PUBLISH_MAX_FILE_SIZE_MB=2,
            ARCHIVE_MAX_SIZE_MB=5,
        )

        workflow = create_workflow(config, private=True)

        assert workflow.options.batch_size == 4
        assert workflow.options.max_file_size == 2 * 1024 * 1024
        assert workflow.options.private is True
        assert workflow.extractor.max_archive_size == 5 * 1024 * 1024
        assert workflow.owner == "acme-bot"
        assert workflow.client.token_hint == "ghp_from..."
        workflow.client.close()

    def test_missing_token_is_a_configuration_error(self):
        from archive_publisher.services.github.exceptions import GithubConfigurationError

        with pytest.raises(GithubConfigurationError):
            create_workflow(Settings(GITHUB_TOKEN=None))
