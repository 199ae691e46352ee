# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Type definitions for request signing.

Provides the value types passed between the body hasher, the signer and
the orchestration layer: Credentials, the request body variants,
RequestDescriptor, SignedHeaders and SignedRequest.

All types are immutable and live for a single signing operation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from awsv4.encoding import encode_form


if TYPE_CHECKING:
    from awsv4.stream import ReplayableStream


@dataclass(frozen=True)
class Credentials:
    """AWS credentials used to sign one request.

    Attributes:
        access_key_id: Access key ID (appears in the Authorization header).
        secret_access_key: Secret access key (never leaves the signer).
        session_token: Optional STS session token.
    """

    access_key_id: str
    secret_access_key: str
    session_token: str | None = None

    def __repr__(self) -> str:
        token = "set" if self.session_token else "unset"
        return (
            f"Credentials(access_key_id={self.access_key_id!r}, "
            f"secret_access_key='***', session_token={token})"
        )


# ---------------------------------------------------------------------------
# Request body variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RawBody:
    """Body sent verbatim (text is sent UTF-8 encoded)."""

    content: str | bytes = ""

    def to_bytes(self) -> bytes:
        """Return the exact wire bytes of the body."""
        if isinstance(self.content, bytes):
            return self.content
        return self.content.encode("utf-8")


@dataclass(frozen=True)
class UrlencodedBody:
    """``application/x-www-form-urlencoded`` body.

    Attributes:
        pairs: Form fields as ``(name, value)`` pairs, in input order.
    """

    pairs: tuple[tuple[str, str], ...] = ()

    def encode(self) -> str:
        """Serialize the form exactly as it is hashed and sent."""
        return encode_form(self.pairs)


@dataclass(frozen=True)
class FormDataBody:
    """``multipart/form-data`` body. Body hashing is not supported."""

    pairs: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True)
class FileBody:
    """File-backed body delivered as a replayable stream.

    Attributes:
        content: Stream holding the file content, or None when the file
            has not been resolved.
    """

    content: ReplayableStream | None = None


Body = RawBody | UrlencodedBody | FormDataBody | FileBody


# ---------------------------------------------------------------------------
# Request and results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RequestDescriptor:
    """Everything the signer needs to know about an outgoing request.

    Attributes:
        method: HTTP method as it will be sent.
        host: Target host (with port when it is not the default one).
        path_with_query: Request path including the query string.
        headers: Request headers. Names are matched case-insensitively.
        body: Request body, or None for an empty body.
        region: AWS region. Empty means the signer default.
        service: AWS service name. Empty means the signer default.
    """

    method: str
    host: str
    path_with_query: str = "/"
    headers: dict[str, str] = field(default_factory=dict)
    body: Body | None = None
    region: str = ""
    service: str = ""


@dataclass(frozen=True)
class SignedHeaders:
    """Result of signing one request.

    Attributes:
        headers: Headers the caller must set on the outgoing request,
            overriding any user-set header of the same name.
        signed_headers: Semicolon-separated list of signed header names.
        payload_hash: Payload hash used in the canonical request.
        canonical_request: The canonical request that was signed.
        string_to_sign: The string to sign derived from it.
    """

    headers: dict[str, str]
    signed_headers: str = ""
    payload_hash: str = ""
    canonical_request: str = ""
    string_to_sign: str = ""

    @property
    def authorization(self) -> str:
        """Value of the Authorization header."""
        return self.headers["Authorization"]

    @property
    def signature(self) -> str:
        """Hex signature extracted from the Authorization header."""
        _, _, signature = self.authorization.partition("Signature=")
        return signature


@dataclass(frozen=True)
class SignedRequest:
    """Outcome of the full sign flow for a request.

    Attributes:
        headers: Request headers with all signing headers merged in.
        signed: The signer result.
        body_hash: Digest computed for the body, or None when the body
            was empty or could not be hashed.
        payload_signed: False when the request has a body that could not
            be hashed. The signature is then computed over the empty-body
            placeholder and will likely be rejected by the server.
    """

    headers: dict[str, str]
    signed: SignedHeaders
    body_hash: str | None = None
    payload_signed: bool = True
