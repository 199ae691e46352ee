# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Idempotent .env loading for credential environment variables.

Reads ``AWS_*`` variables from two locations (in order):

1. ``~/.config/awsv4/.env`` (XDG config directory)
2. ``.env`` in the current working directory

Variables already present in the environment are never overwritten, so
the XDG file wins over the working directory file.
"""

import logging
from pathlib import Path

from dotenv import load_dotenv


logger = logging.getLogger(__name__)

_dotenv_loaded = False


def load_dotenv_once(xdg_env: Path | None = None) -> None:
    """Load .env files once per process.

    Args:
        xdg_env: Path of the XDG ``.env`` file. Defaults to
            ``get_dotenv_path()``.
    """
    global _dotenv_loaded
    if _dotenv_loaded:
        return

    if xdg_env is None:
        from awsv4.config import get_dotenv_path

        xdg_env = get_dotenv_path()

    for path in (xdg_env, Path.cwd() / ".env"):
        if path.exists():
            load_dotenv(path, override=False)
            logger.debug("Loaded .env from %s", path)

    _dotenv_loaded = True


def reset_dotenv_state() -> None:
    """Reset the loaded state. For testing only."""
    global _dotenv_loaded
    _dotenv_loaded = False
