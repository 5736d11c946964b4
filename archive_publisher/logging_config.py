"""Logging setup for processes embedding the publisher."""

import logging
import os
from typing import Optional


def configure_logging(env: Optional[str] = None) -> int:
    """
    Configure root logging based on the ENV environment variable.

    ENV=dev: INFO level with detailed format (default)
    ENV=prod/staging: WARNING level, minimal logs

    Returns:
        The log level that was applied.
    """
    _env = (env or os.getenv("ENV", "dev")).lower()
    _is_dev = _env == "dev"
    _log_level = logging.INFO if _is_dev else logging.WARNING

    logging.basicConfig(
        level=_log_level,
        format=(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
            if _is_dev
            else "%(levelname)s | %(message)s"
        ),
        datefmt="%H:%M:%S",
        force=True,
    )

    # httpx logs every request at INFO; keep it quiet outside debugging
    logging.getLogger("httpx").setLevel(logging.WARNING)

    return _log_level
