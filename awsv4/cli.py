# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""awsv4 CLI: multi-command entry point.

Subcommands:

* ``sign``: print the SigV4 headers for a request
* ``init``: create a stub config file
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import urllib.parse
from dataclasses import replace
from pathlib import Path

from awsv4.auth import sign_request
from awsv4.config import ConfigError, get_config_path, load_auth_params
from awsv4.logging import configure_logging
from awsv4.stream import ReplayableStream
from awsv4.types import (
    Body,
    FileBody,
    RawBody,
    RequestDescriptor,
    UrlencodedBody,
)


logger = logging.getLogger(__name__)

_SUBCOMMANDS = frozenset({"sign", "init"})

_USAGE = """\
usage: awsv4 <command> [args]

commands:
  sign   Print the SigV4 headers for a request
  init   Create a stub config file

Run 'awsv4 <command> --help' for command-specific help.\
"""


def _parse_header(raw: str) -> tuple[str, str]:
    name, sep, value = raw.partition(":")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(
            f"Header must look like 'Name: value', got {raw!r}"
        )
    return name.strip(), value.strip()


def _parse_field(raw: str) -> tuple[str, str]:
    name, sep, value = raw.partition("=")
    if not sep:
        raise argparse.ArgumentTypeError(
            f"Form field must look like 'name=value', got {raw!r}"
        )
    return name, value


def _build_sign_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="awsv4 sign",
        description="Print the SigV4 headers for a request.",
    )
    parser.add_argument("url", help="Full request URL")
    parser.add_argument("-X", "--method", default="GET")
    parser.add_argument(
        "-H",
        "--header",
        action="append",
        default=[],
        type=_parse_header,
        help="Request header 'Name: value' (repeatable)",
    )
    body = parser.add_mutually_exclusive_group()
    body.add_argument("--data", help="Raw request body")
    body.add_argument(
        "--data-file", type=Path, help="Read the request body from a file"
    )
    body.add_argument(
        "--form",
        action="append",
        type=_parse_field,
        help="urlencoded form field 'name=value' (repeatable)",
    )
    parser.add_argument("--config", type=Path, help="Config file path")
    parser.add_argument("--profile", help="Profile name in the config file")
    parser.add_argument("--region", help="Override the region")
    parser.add_argument("--service", help="Override the service")
    parser.add_argument(
        "--json", action="store_true", help="Print headers as JSON"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log canonical request"
    )
    return parser


def cmd_sign(argv: list[str]) -> int:
    """Sign a request described on the command line.

    Args:
        argv: Arguments after ``sign``.

    Returns:
        Exit code (0 on success, 1 on error).
    """
    args = _build_sign_parser().parse_args(argv)
    configure_logging(level=logging.DEBUG if args.verbose else logging.WARNING)

    url = urllib.parse.urlsplit(args.url)
    if not url.netloc:
        logger.error("URL must include a host: %s", args.url)
        return 1

    stream: ReplayableStream | None = None
    try:
        params = load_auth_params(args.config, args.profile)
        if args.region or args.service:
            params = replace(
                params,
                region=args.region or params.region,
                service=args.service or params.service,
            )

        body: Body | None = None
        if args.data is not None:
            body = RawBody(args.data)
        elif args.data_file is not None:
            stream = ReplayableStream.from_path(args.data_file)
            body = FileBody(stream)
        elif args.form:
            body = UrlencodedBody(tuple(args.form))

        path = url.path or "/"
        if url.query:
            path = f"{path}?{url.query}"
        request = RequestDescriptor(
            method=args.method.upper(),
            host=url.netloc,
            path_with_query=path,
            headers=dict(args.header),
            body=body,
        )
        result = sign_request(request, params)
    except (ConfigError, OSError) as e:
        logger.error("%s", e)
        return 1
    finally:
        if stream is not None:
            stream.close()

    if args.json:
        print(json.dumps(result.headers, indent=2))
    else:
        for name, value in result.headers.items():
            print(f"{name}: {value}")
    return 0


def cmd_init(argv: list[str]) -> int:
    """Create a stub config file if none exists.

    Args:
        argv: Extra arguments (currently unused).

    Returns:
        Exit code (always 0).
    """
    config_path = get_config_path()

    if config_path.exists():
        print(f"Config already exists: {config_path}")
        return 0

    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(_STUB_CONFIG)
    print(f"Created stub config: {config_path}")
    return 0


_DISPATCH: dict[str, str] = {
    "sign": "cmd_sign",
    "init": "cmd_init",
}


def cli() -> None:
    """Entry point for ``awsv4``."""
    argv = sys.argv[1:]

    if not argv or argv[0] in ("-h", "--help"):
        print(_USAGE)
        sys.exit(0)

    if argv[0] not in _SUBCOMMANDS:
        print(f"awsv4: unknown command '{argv[0]}'", file=sys.stderr)
        print(_USAGE, file=sys.stderr)
        sys.exit(2)

    # Look up handler by name so tests can mock individual commands.
    import awsv4.cli as _self

    handler = getattr(_self, _DISPATCH[argv[0]])
    sys.exit(handler(argv[1:]))


#: Stub configuration template written by ``awsv4 init``.
_STUB_CONFIG = """\
# awsv4 configuration
#
# Values tagged !env are read from the environment (or a .env file next
# to this one).

default_profile: default

profiles:
  default:
    access_key: !env AWS_ACCESS_KEY_ID
    secret_key: !env AWS_SECRET_ACCESS_KEY
    session_token: !env AWS_SESSION_TOKEN
    # region: us-east-1
    # service: execute-api
"""
