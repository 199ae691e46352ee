# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Logging configuration with credential redaction.

The signer logs canonical requests at DEBUG level, and those contain the
session token whenever one is used.  ``SecretFilter`` keeps registered
secrets (secret keys, session tokens) out of every log line.

Usage:
    # In entry points (CLI)
    from awsv4.logging import configure_logging
    configure_logging(level=logging.DEBUG)

    # In library modules
    import logging
    logger = logging.getLogger(__name__)
"""

import logging
import re
from typing import ClassVar


REDACTED = "[REDACTED]"


class SecretFilter(logging.Filter):
    """Logging filter that redacts registered secrets from log output.

    Secrets are shared by all filter instances.  Any registered secret in
    a message or a string argument is replaced with ``[REDACTED]``.
    """

    _secrets: ClassVar[set[str]] = set()
    _pattern: ClassVar[re.Pattern[str] | None] = None

    def filter(self, record: logging.LogRecord) -> bool:
        """Redact secrets in place. Never suppresses the record."""
        pattern = self._pattern
        if pattern is None:
            return True
        record.msg = pattern.sub(REDACTED, str(record.msg))
        if isinstance(record.args, tuple):
            record.args = tuple(
                pattern.sub(REDACTED, arg) if isinstance(arg, str) else arg
                for arg in record.args
            )
        return True

    @classmethod
    def register_secret(cls, secret: str | None) -> None:
        """Register a secret for redaction. Empty values are ignored."""
        if secret and secret not in cls._secrets:
            cls._secrets.add(secret)
            cls._rebuild_pattern()

    @classmethod
    def clear_secrets(cls) -> None:
        """Forget all registered secrets. Primarily for testing."""
        cls._secrets.clear()
        cls._pattern = None

    @classmethod
    def _rebuild_pattern(cls) -> None:
        if not cls._secrets:
            cls._pattern = None
            return
        # Longest first so a secret containing another is redacted whole
        ordered = sorted(cls._secrets, key=len, reverse=True)
        cls._pattern = re.compile("|".join(re.escape(s) for s in ordered))


def configure_logging(
    level: int = logging.INFO,
    format_string: str | None = None,
    add_secret_filter: bool = True,
) -> None:
    """Configure the root logger.

    Args:
        level: Logging level.
        format_string: Custom format. Defaults to time, name, level, message.
        add_secret_filter: Attach ``SecretFilter`` to the handler.
    """
    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(format_string))
    if add_secret_filter:
        handler.addFilter(SecretFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
