"""Helpers for archive member paths and payloads."""

import base64
import hashlib
from typing import Tuple

DEFAULT_MIME_TYPE = "application/octet-stream"

# Extension -> MIME type. Anything missing falls back to DEFAULT_MIME_TYPE.
MIME_TYPES = {
    "js": "application/javascript",
    "json": "application/json",
    "html": "text/html",
    "css": "text/css",
    "txt": "text/plain",
    "md": "text/markdown",
    "xml": "application/xml",
    "pdf": "application/pdf",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "svg": "image/svg+xml",
    "zip": "application/zip",
    "py": "text/x-python",
    "java": "text/x-java-source",
    "cpp": "text/x-c++src",
    "c": "text/x-csrc",
    "php": "application/x-httpd-php",
}

_SIZE_UNITS = ["Bytes", "KB", "MB", "GB", "TB"]


def split_path(path: str) -> Tuple[str, str]:
    """Return (directory, name) for a slash-separated archive path."""
    directory, _, name = path.rpartition("/")
    return directory, name


def extension_key(name: str) -> str:
    """Lowercased text after the last '.', or the whole name if there is none."""
    return name[name.rfind(".") + 1 :].lower()


def dotted_extension(name: str) -> str:
    """Lowercased extension including the dot (".py"), or "" without one."""
    index = name.rfind(".")
    return name[index:].lower() if index >= 0 else ""


def detect_mime_type(path: str) -> str:
    return MIME_TYPES.get(extension_key(path), DEFAULT_MIME_TYPE)


def compute_checksum(data: bytes) -> str:
    """SHA-256 hex digest of the decoded payload."""
    return hashlib.sha256(data).hexdigest()


def encode_content(data: bytes) -> str:
    """Transport encoding used by the contents API."""
    return base64.b64encode(data).decode("ascii")


def decode_content(content: str) -> bytes:
    return base64.b64decode(content)


def format_file_size(size_bytes: int) -> str:
    """Human readable size, e.g. 1536 -> "1.5 KB"."""
    if size_bytes <= 0:
        return "0 Bytes"

    value = float(size_bytes)
    index = 0
    while value >= 1024 and index < len(_SIZE_UNITS) - 1:
        value /= 1024
        index += 1
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {_SIZE_UNITS[index]}"
