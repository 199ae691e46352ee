# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Shared pytest fixtures used across multiple test modules."""

from collections.abc import AsyncIterator, Iterator

import pytest

from awsv4.config import AuthParams
from awsv4.logging import SecretFilter
from awsv4.types import Credentials
from tests.vectors import SUITE_ACCESS_KEY_ID, SUITE_SECRET_ACCESS_KEY


@pytest.fixture
def credentials() -> Credentials:
    """Test-suite credentials without a session token."""
    return Credentials(SUITE_ACCESS_KEY_ID, SUITE_SECRET_ACCESS_KEY)


@pytest.fixture
def auth_params() -> AuthParams:
    """Signing parameters for an API Gateway endpoint."""
    return AuthParams(
        access_key=SUITE_ACCESS_KEY_ID,
        secret_key=SUITE_SECRET_ACCESS_KEY,
        region="eu-west-1",
        service="execute-api",
    )


@pytest.fixture(autouse=True)
def _clear_secrets() -> Iterator[None]:
    """Keep registered log secrets from leaking between tests."""
    SecretFilter.clear_secrets()
    yield
    SecretFilter.clear_secrets()


def chunks(*parts: bytes) -> Iterator[bytes]:
    """Yield the given chunks one by one."""
    yield from parts


async def achunks(*parts: bytes) -> AsyncIterator[bytes]:
    """Asynchronously yield the given chunks one by one."""
    for part in parts:
        yield part


def failing_chunks(*parts: bytes) -> Iterator[bytes]:
    """Yield the given chunks, then fail like a broken pipe."""
    yield from parts
    raise OSError("connection reset")


async def afailing_chunks(*parts: bytes) -> AsyncIterator[bytes]:
    """Async variant of ``failing_chunks``."""
    for part in parts:
        yield part
    raise OSError("connection reset")
