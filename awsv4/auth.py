# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Request signing flow and HTTP client integration.

``sign_request`` runs the complete flow for one request:

1. Drop stale ``Authorization``, ``X-Amz-Date`` and
   ``X-Amz-Security-Token`` headers (any case).
2. Hash the body and set ``X-Amz-Content-Sha256`` when a digest exists.
3. Sign with the configured region and service.
4. Merge the signed headers over the request headers.

The request itself is never modified; the caller applies the returned
headers.  ``async_sign_request`` is the same flow with the body hashed
through an async stream cursor.

``AWSv4Auth`` plugs the flow into ``httpx`` clients::

    client = httpx.Client(auth=AWSv4Auth(load_auth_params()))
"""

from __future__ import annotations

import logging
from collections.abc import Generator
from dataclasses import replace
from datetime import datetime

import httpx

from awsv4.body_hash import (
    DEFAULT_ALGORITHM,
    DEFAULT_ENCODING,
    compute_body_hash,
    compute_body_hash_async,
)
from awsv4.config import AuthParams
from awsv4.headers import (
    BODY_HASH_HEADER,
    STALE_SIGNING_HEADERS,
    remove_headers,
    upsert_headers,
)
from awsv4.signer import RequestSigner, SigV4Signer
from awsv4.types import (
    Body,
    RawBody,
    RequestDescriptor,
    SignedRequest,
    UrlencodedBody,
)


logger = logging.getLogger(__name__)


def _has_content(body: Body | None) -> bool:
    """Return True if the body would put bytes on the wire."""
    if body is None:
        return False
    if isinstance(body, RawBody):
        return bool(body.content)
    if isinstance(body, UrlencodedBody):
        return bool(body.pairs)
    return True


def _prepare(
    request: RequestDescriptor, params: AuthParams
) -> RequestDescriptor:
    """Strip stale signing headers and apply region/service from params."""
    return replace(
        request,
        headers=remove_headers(request.headers, STALE_SIGNING_HEADERS),
        region=params.region or request.region,
        service=params.service or request.service,
    )


def _finish(
    request: RequestDescriptor,
    params: AuthParams,
    body_hash: str | None,
    signer: RequestSigner | None,
    now: datetime | None,
) -> SignedRequest:
    headers = request.headers
    if body_hash:
        headers = upsert_headers(headers, {BODY_HASH_HEADER: body_hash})

    signer = signer or SigV4Signer()
    signed = signer.sign(
        replace(request, headers=headers), params.credentials, now=now
    )

    payload_signed = body_hash is not None or not _has_content(request.body)
    if not payload_signed:
        logger.warning(
            "Signing %s %s%s without a body hash; the signature may be "
            "rejected",
            request.method,
            request.host,
            request.path_with_query,
        )

    return SignedRequest(
        headers=upsert_headers(headers, signed.headers),
        signed=signed,
        body_hash=body_hash,
        payload_signed=payload_signed,
    )


def sign_request(
    request: RequestDescriptor,
    params: AuthParams,
    *,
    signer: RequestSigner | None = None,
    now: datetime | None = None,
) -> SignedRequest:
    """Hash the body and sign a request.

    Args:
        request: The request to sign.
        params: Credentials, region and service.
        signer: Signer to use. Defaults to ``SigV4Signer()``.
        now: Signing time. Defaults to the current time.

    Returns:
        SignedRequest whose ``headers`` replace the request headers.
    """
    request = _prepare(request, params)
    body_hash = compute_body_hash(
        request.body, DEFAULT_ALGORITHM, DEFAULT_ENCODING
    )
    return _finish(request, params, body_hash, signer, now)


async def async_sign_request(
    request: RequestDescriptor,
    params: AuthParams,
    *,
    signer: RequestSigner | None = None,
    now: datetime | None = None,
) -> SignedRequest:
    """Async variant of ``sign_request``.

    File bodies are hashed through an async cursor; signing starts only
    after hashing has finished or failed.
    """
    request = _prepare(request, params)
    body_hash = await compute_body_hash_async(
        request.body, DEFAULT_ALGORITHM, DEFAULT_ENCODING
    )
    return _finish(request, params, body_hash, signer, now)


def descriptor_from_httpx(request: httpx.Request) -> RequestDescriptor:
    """Describe a (fully read) httpx request for signing."""
    raw_path = request.url.raw_path.decode("ascii")
    return RequestDescriptor(
        method=request.method,
        host=request.url.netloc.decode("ascii"),
        path_with_query=raw_path,
        headers=dict(request.headers.items()),
        body=RawBody(request.content) if request.content else None,
    )


class AWSv4Auth(httpx.Auth):
    """httpx authentication that signs each request with SigV4.

    The request body is buffered before signing so it can be hashed.

    Args:
        params: Credentials, region and service.
        signer: Signer to use. Defaults to ``SigV4Signer()``.
    """

    requires_request_body = True

    def __init__(
        self, params: AuthParams, signer: RequestSigner | None = None
    ) -> None:
        self._params = params
        self._signer = signer or SigV4Signer()

    def auth_flow(
        self, request: httpx.Request
    ) -> Generator[httpx.Request, httpx.Response, None]:
        signed = sign_request(
            descriptor_from_httpx(request), self._params, signer=self._signer
        )
        for name in STALE_SIGNING_HEADERS:
            if name in request.headers:
                del request.headers[name]
        for name, value in signed.headers.items():
            request.headers[name] = value
        yield request
