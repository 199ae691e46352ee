# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""AWS Signature Version 4 request signing.

Builds the canonical request, the string to sign and the HMAC-SHA256
signature for a request, and returns the headers that authenticate it:

- ``Authorization``
- ``X-Amz-Date``
- ``X-Amz-Security-Token`` (only with a session token)
- ``Host``
- ``X-Amz-Content-Sha256`` (only for S3, when the request has none)

The body is never read here.  Its digest is passed in through the
``X-Amz-Content-Sha256`` request header (see ``awsv4.body_hash``); when
the header is absent the SHA-256 of the empty string is signed instead.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import urllib.parse
from collections.abc import Mapping
from datetime import datetime
from typing import Protocol

from awsv4.encoding import uri_encode
from awsv4.headers import (
    AUTHORIZATION_HEADER,
    BODY_HASH_HEADER,
    DATE_HEADER,
    HOST_HEADER,
    SECURITY_TOKEN_HEADER,
    STALE_SIGNING_HEADERS,
    format_amz_date,
    get_header,
    remove_headers,
    utcnow,
)
from awsv4.types import Credentials, RequestDescriptor, SignedHeaders


logger = logging.getLogger(__name__)

ALGORITHM = "AWS4-HMAC-SHA256"

#: AWS API Gateway is the default target.
DEFAULT_SERVICE = "execute-api"
DEFAULT_REGION = "us-east-1"

EMPTY_SHA256 = hashlib.sha256(b"").hexdigest()

#: Headers rewritten by transports and proxies; signing them would break
#: verification whenever they change in flight.
UNSIGNABLE_HEADERS = frozenset(
    {
        "authorization",
        "connection",
        "expect",
        "presigned-expires",
        "user-agent",
        "x-amzn-trace-id",
    }
)


# ---------------------------------------------------------------------------
# Canonical request construction
# ---------------------------------------------------------------------------


def canonical_uri(path: str, *, is_s3: bool = False) -> str:
    """Build canonical URI from request path.

    SigV4 has a per-service ``doubleURIEncode`` setting:

    * **S3** (``is_s3=True``): decode any existing percent-encoding, then
      URI-encode once.  ``.``/``..`` segments and double slashes are kept.
    * **All other services**: normalize the path, then URI-encode twice,
      so ``%3A`` becomes ``%253A``.

    Args:
        path: Request path, possibly already percent-encoded.
        is_s3: Use S3 canonicalization.

    Returns:
        URI-encoded canonical path.
    """
    path = path.split("?")[0]
    if not path:
        return "/"

    if is_s3:
        return uri_encode(urllib.parse.unquote(path), encode_slash=False)

    decoded = urllib.parse.unquote(path)
    normalized: list[str] = []
    for part in decoded.split("/"):
        if part == "..":
            if normalized:
                normalized.pop()
        elif part not in (".", ""):
            normalized.append(part)
    normalized_path = "/" + "/".join(normalized)
    if decoded.endswith("/") and normalized:
        normalized_path += "/"

    single = uri_encode(normalized_path, encode_slash=False)
    return uri_encode(single, encode_slash=False)


def canonical_query_string(query: str) -> str:
    """Build canonical query string.

    Names and values are RFC 3986 encoded independently and sorted by
    encoded name, then encoded value.

    Args:
        query: Raw query string (without leading ?).

    Returns:
        Canonical query string; empty when there are no parameters.
    """
    if not query:
        return ""

    params = urllib.parse.parse_qsl(query, keep_blank_values=True)
    encoded = sorted((uri_encode(k), uri_encode(v)) for k, v in params)
    return "&".join(f"{k}={v}" for k, v in encoded)


def canonical_headers(headers: Mapping[str, str]) -> tuple[str, str]:
    """Build the canonical headers block and the signed header list.

    Names are lower-cased, values trimmed with internal whitespace runs
    collapsed.  Names differing only in case are merged, values joined
    with ``,`` in input order.

    Args:
        headers: Headers to sign.

    Returns:
        Tuple of (canonical headers, one ``name:value\\n`` line per header;
        semicolon-separated signed header names).
    """
    merged: dict[str, list[str]] = {}
    for name, value in headers.items():
        lower = name.lower().strip()
        if lower in UNSIGNABLE_HEADERS:
            continue
        merged.setdefault(lower, []).append(" ".join(str(value).split()))

    names = sorted(merged)
    lines = "".join(f"{name}:{','.join(merged[name])}\n" for name in names)
    return lines, ";".join(names)


def build_canonical_request(
    method: str,
    path: str,
    query: str,
    canonical_headers_block: str,
    signed_headers: str,
    payload_hash: str,
    *,
    is_s3: bool = False,
) -> str:
    """Build the canonical request string.

    Args:
        method: HTTP method.
        path: Request path (without query string).
        query: Query string (without leading ?).
        canonical_headers_block: Output of ``canonical_headers``.
        signed_headers: Semicolon-separated signed header names.
        payload_hash: Hex digest of the payload.
        is_s3: Use S3 path canonicalization.

    Returns:
        Canonical request string.
    """
    return "\n".join(
        [
            method,
            canonical_uri(path, is_s3=is_s3),
            canonical_query_string(query),
            canonical_headers_block,
            signed_headers,
            payload_hash,
        ]
    )


# ---------------------------------------------------------------------------
# Signing
# ---------------------------------------------------------------------------


def credential_scope(date_stamp: str, region: str, service: str) -> str:
    """Return ``date/region/service/aws4_request``."""
    return f"{date_stamp}/{region}/{service}/aws4_request"


def build_string_to_sign(
    amz_date: str, scope: str, canonical_request: str
) -> str:
    """Build the SigV4 string to sign.

    Args:
        amz_date: Request timestamp (``X-Amz-Date``).
        scope: Credential scope.
        canonical_request: The canonical request string.

    Returns:
        String to sign.
    """
    return "\n".join(
        [
            ALGORITHM,
            amz_date,
            scope,
            hashlib.sha256(canonical_request.encode("utf-8")).hexdigest(),
        ]
    )


def _hmac_sha256(key: bytes, msg: str) -> bytes:
    """HMAC-SHA256 helper."""
    return hmac.new(key, msg.encode("utf-8"), hashlib.sha256).digest()


def derive_signing_key(
    secret_key: str, date_stamp: str, region: str, service: str
) -> bytes:
    """Derive the SigV4 signing key.

    Each step is keyed by the raw output of the previous one.

    Args:
        secret_key: AWS secret access key.
        date_stamp: Date string (YYYYMMDD).
        region: AWS region.
        service: AWS service name.

    Returns:
        Derived signing key bytes.
    """
    k_date = _hmac_sha256(("AWS4" + secret_key).encode("utf-8"), date_stamp)
    k_region = _hmac_sha256(k_date, region)
    k_service = _hmac_sha256(k_region, service)
    return _hmac_sha256(k_service, "aws4_request")


def compute_signature(signing_key: bytes, string_to_sign: str) -> str:
    """Return the lowercase hex HMAC-SHA256 of the string to sign."""
    return hmac.new(
        signing_key, string_to_sign.encode("utf-8"), hashlib.sha256
    ).hexdigest()


def format_authorization(
    access_key_id: str, scope: str, signed_headers: str, signature: str
) -> str:
    """Format the Authorization header value."""
    return (
        f"{ALGORITHM} Credential={access_key_id}/{scope}, "
        f"SignedHeaders={signed_headers}, Signature={signature}"
    )


class RequestSigner(Protocol):
    """Anything that can produce authentication headers for a request."""

    def sign(
        self,
        descriptor: RequestDescriptor,
        credentials: Credentials,
        *,
        now: datetime | None = None,
    ) -> SignedHeaders: ...


class SigV4Signer:
    """Signs requests with AWS Signature Version 4.

    The signer holds no per-request state; one instance can sign any
    number of requests, concurrently.

    Args:
        default_region: Region used when the request names none.
        default_service: Service used when the request names none.
    """

    def __init__(
        self,
        default_region: str = DEFAULT_REGION,
        default_service: str = DEFAULT_SERVICE,
    ) -> None:
        self.default_region = default_region
        self.default_service = default_service

    def sign(
        self,
        descriptor: RequestDescriptor,
        credentials: Credentials,
        *,
        now: datetime | None = None,
    ) -> SignedHeaders:
        """Sign a request.

        Args:
            descriptor: The request. Its headers are not modified.
            credentials: Credentials to sign with.
            now: Signing time. Defaults to the current time, read once.

        Returns:
            SignedHeaders with the headers to set on the request.
        """
        amz_date, date_stamp = format_amz_date(now or utcnow())
        region = descriptor.region or self.default_region
        service = descriptor.service or self.default_service
        is_s3 = service == "s3"

        headers = remove_headers(
            descriptor.headers, (*STALE_SIGNING_HEADERS, HOST_HEADER)
        )
        emitted: dict[str, str] = {
            HOST_HEADER: descriptor.host,
            DATE_HEADER: amz_date,
        }
        if credentials.session_token:
            emitted[SECURITY_TOKEN_HEADER] = credentials.session_token

        payload_hash = get_header(headers, BODY_HASH_HEADER)
        if payload_hash is None:
            payload_hash = EMPTY_SHA256
            if is_s3:
                emitted[BODY_HASH_HEADER] = payload_hash

        headers.update(emitted)
        block, signed_headers = canonical_headers(headers)

        path, _, query = descriptor.path_with_query.partition("?")
        canonical_request = build_canonical_request(
            descriptor.method or "GET",
            path,
            query,
            block,
            signed_headers,
            payload_hash,
            is_s3=is_s3,
        )
        logger.debug("Canonical request:\n%s", canonical_request)

        scope = credential_scope(date_stamp, region, service)
        string_to_sign = build_string_to_sign(
            amz_date, scope, canonical_request
        )
        signing_key = derive_signing_key(
            credentials.secret_access_key or "", date_stamp, region, service
        )
        signature = compute_signature(signing_key, string_to_sign)

        emitted[AUTHORIZATION_HEADER] = format_authorization(
            credentials.access_key_id or "", scope, signed_headers, signature
        )
        return SignedHeaders(
            headers=emitted,
            signed_headers=signed_headers,
            payload_hash=payload_hash,
            canonical_request=canonical_request,
            string_to_sign=string_to_sign,
        )
