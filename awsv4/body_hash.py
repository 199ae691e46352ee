# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Request body hashing for SigV4 payload signing.

Computes the digest that goes into the ``X-Amz-Content-Sha256`` header
for each body mode:

- raw: the exact wire bytes, hashed in one step.
- urlencoded: the RFC 3986 serialization of the form.
- formdata: not supported, no digest.
- file: streamed from a clone of the body stream, so the body stays
  readable for the transport.

Hashing never raises for body conditions.  Anything that prevents a
digest (unsupported mode, missing or unreadable stream) yields None and a
warning; the request is then signed with the empty-body placeholder.
"""

import base64
import hashlib
import logging

from awsv4.stream import StreamCursor, StreamError
from awsv4.types import Body, FileBody, FormDataBody, RawBody, UrlencodedBody


logger = logging.getLogger(__name__)

DEFAULT_ALGORITHM = "sha256"
DEFAULT_ENCODING = "hex"

_ENCODINGS = frozenset({"hex", "base64"})


def _finalize(hasher: "hashlib._Hash", encoding: str) -> str:
    """Render a finished hash in the requested encoding."""
    if encoding == "hex":
        return hasher.hexdigest()
    return base64.b64encode(hasher.digest()).decode("ascii")


def _new_hasher(algorithm: str, encoding: str) -> "hashlib._Hash":
    if encoding not in _ENCODINGS:
        raise ValueError(f"Unsupported digest encoding: {encoding!r}")
    hasher = hashlib.new(algorithm)
    # Extendable-output functions (shake_*) have no fixed digest length
    if hasher.digest_size == 0:
        raise ValueError(f"Unsupported digest algorithm: {algorithm!r}")
    return hasher


def _open_cursor(body: FileBody) -> StreamCursor | None:
    if body.content is None:
        logger.warning("File body has no content stream; skipping body hash")
        return None
    try:
        return body.content.clone()
    except StreamError as e:
        logger.warning("Cannot clone file body stream: %s", e)
        return None


def compute_body_hash(
    body: Body | None,
    algorithm: str | None = DEFAULT_ALGORITHM,
    encoding: str | None = DEFAULT_ENCODING,
) -> str | None:
    """Compute the digest of a request body.

    Args:
        body: Request body, or None.
        algorithm: ``hashlib`` algorithm name.
        encoding: ``hex`` or ``base64``.

    Returns:
        Encoded digest, or None when there is nothing to hash or the body
        cannot be hashed.

    Raises:
        ValueError: If the algorithm or encoding is not supported.
    """
    if body is None or not algorithm or not encoding:
        return None

    hasher = _new_hasher(algorithm, encoding)

    if isinstance(body, RawBody):
        hasher.update(body.to_bytes())
        return _finalize(hasher, encoding)

    if isinstance(body, UrlencodedBody):
        hasher.update(body.encode().encode("utf-8"))
        return _finalize(hasher, encoding)

    if isinstance(body, FormDataBody):
        # Signing multipart bodies would require adding form fields
        logger.warning("Body hashing is not supported for form-data bodies")
        return None

    if isinstance(body, FileBody):
        cursor = _open_cursor(body)
        if cursor is None:
            return None
        try:
            for chunk in cursor:
                hasher.update(chunk)
        except StreamError as e:
            logger.warning("Reading file body failed: %s", e)
            return None
        return _finalize(hasher, encoding)

    logger.warning("Unknown body type %s; skipping body hash", type(body))
    return None


async def compute_body_hash_async(
    body: Body | None,
    algorithm: str | None = DEFAULT_ALGORITHM,
    encoding: str | None = DEFAULT_ENCODING,
) -> str | None:
    """Compute the digest of a request body, streaming file bodies.

    Same contract as ``compute_body_hash``; file bodies are read through
    an async cursor, so async-only sources are supported.  Read failures
    resolve to None instead of leaving the caller waiting.
    """
    if not isinstance(body, FileBody) or not algorithm or not encoding:
        return compute_body_hash(body, algorithm, encoding)

    hasher = _new_hasher(algorithm, encoding)

    if body.content is None:
        logger.warning("File body has no content stream; skipping body hash")
        return None
    try:
        cursor = body.content.aclone()
    except StreamError as e:
        logger.warning("Cannot clone file body stream: %s", e)
        return None

    try:
        async for chunk in cursor:
            hasher.update(chunk)
    except StreamError as e:
        logger.warning("Reading file body failed: %s", e)
        return None
    return _finalize(hasher, encoding)
