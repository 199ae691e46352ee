# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""AWS Signature Version 4 request signing.

Hashes request bodies (in-memory, urlencoded and streamed files) and
derives the SigV4 ``Authorization`` header and its companions.
"""

from awsv4.auth import AWSv4Auth, async_sign_request, sign_request
from awsv4.body_hash import compute_body_hash, compute_body_hash_async
from awsv4.config import AuthParams, ConfigError, load_auth_params
from awsv4.signer import RequestSigner, SigV4Signer
from awsv4.stream import (
    ReplayableStream,
    StreamCloneError,
    StreamError,
    StreamReadError,
)
from awsv4.types import (
    Body,
    Credentials,
    FileBody,
    FormDataBody,
    RawBody,
    RequestDescriptor,
    SignedHeaders,
    SignedRequest,
    UrlencodedBody,
)


__all__ = [
    "AWSv4Auth",
    "AuthParams",
    "Body",
    "ConfigError",
    "Credentials",
    "FileBody",
    "FormDataBody",
    "RawBody",
    "ReplayableStream",
    "RequestDescriptor",
    "RequestSigner",
    "SigV4Signer",
    "SignedHeaders",
    "SignedRequest",
    "StreamCloneError",
    "StreamError",
    "StreamReadError",
    "UrlencodedBody",
    "async_sign_request",
    "compute_body_hash",
    "compute_body_hash_async",
    "load_auth_params",
    "sign_request",
]
