"""Shared fixtures: fake time, sample records and in-memory archives."""

import io
import os
import zipfile
from datetime import datetime, timezone
from typing import Dict, List

import pytest

# Settings() is instantiated at import time; keep it independent of the host env.
os.environ.setdefault("GITHUB_TOKEN", "ghp_testtoken1234567890")
os.environ.setdefault("GITHUB_OWNER", "octo")


class FakeClock:
    """Monotonic clock that only advances when sleep() is called."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_clock():
    return FakeClock()


def build_zip(entries: Dict[str, bytes], compression: int = zipfile.ZIP_DEFLATED) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression) as archive:
        for name, data in entries.items():
            info = zipfile.ZipInfo(name, date_time=(2024, 1, 2, 3, 4, 6))
            info.compress_type = compression
            archive.writestr(info, data)
    return buffer.getvalue()


@pytest.fixture
def make_zip():
    return build_zip


@pytest.fixture
def sample_records():
    from archive_publisher.entities import FileRecord

    stamp = datetime(2024, 1, 2, tzinfo=timezone.utc)
    return [
        FileRecord.from_bytes("src/main.py", b"print('hi')\n", last_modified=stamp),
        FileRecord.from_bytes("src/utils/helpers.py", b"def f():\n    return 1\n", last_modified=stamp),
        FileRecord.from_bytes("README_source.md", b"# Project\n", last_modified=stamp),
    ]
