# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Header and timestamp helpers.

Headers are plain ``dict[str, str]`` mappings whose names are compared
case-insensitively.  The helpers never mutate their input; they return a
new mapping so callers decide when to apply the result.
"""

from collections.abc import Iterable, Mapping
from datetime import UTC, datetime


AUTHORIZATION_HEADER = "Authorization"
DATE_HEADER = "X-Amz-Date"
SECURITY_TOKEN_HEADER = "X-Amz-Security-Token"
BODY_HASH_HEADER = "X-Amz-Content-Sha256"
HOST_HEADER = "Host"

#: Headers that carry a previous signature and must be dropped before
#: a request is signed again.
STALE_SIGNING_HEADERS = (
    AUTHORIZATION_HEADER,
    DATE_HEADER,
    SECURITY_TOKEN_HEADER,
)

_AMZ_DATE_FORMAT = "%Y%m%dT%H%M%SZ"


def utcnow() -> datetime:
    """Return the current time in UTC."""
    return datetime.now(UTC)


def format_amz_date(now: datetime) -> tuple[str, str]:
    """Format a timestamp for SigV4.

    Both values derive from the same ``now`` so they can never disagree.

    Args:
        now: Timestamp. Naive values are taken to be UTC.

    Returns:
        Tuple of (amz_date ``YYYYMMDDTHHMMSSZ``, date_stamp ``YYYYMMDD``).
    """
    if now.tzinfo is not None:
        now = now.astimezone(UTC)
    amz_date = now.strftime(_AMZ_DATE_FORMAT)
    return amz_date, amz_date[:8]


def get_header(headers: Mapping[str, str], name: str) -> str | None:
    """Return the first value of a header, matching the name in any case."""
    lower = name.lower()
    for key, value in headers.items():
        if key.lower() == lower:
            return value
    return None


def remove_headers(
    headers: Mapping[str, str], names: Iterable[str]
) -> dict[str, str]:
    """Return a copy of ``headers`` without the given names (any case)."""
    drop = {name.lower() for name in names}
    return {k: v for k, v in headers.items() if k.lower() not in drop}


def upsert_headers(
    headers: Mapping[str, str], updates: Mapping[str, str]
) -> dict[str, str]:
    """Return a copy of ``headers`` with ``updates`` applied.

    Every existing header whose name matches an update (in any case) is
    replaced, so a user-set value can never shadow a computed one.
    """
    merged = remove_headers(headers, updates.keys())
    merged.update(updates)
    return merged
