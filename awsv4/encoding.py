# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""RFC 3986 percent-encoding used for query strings and form bodies.

AWS requires strict RFC 3986 encoding: only the unreserved characters
``A-Z a-z 0-9 - _ . ~`` pass through, everything else is encoded as
``%XX`` (uppercase hex) over the UTF-8 bytes, including the sub-delimiters
``! ' ( ) *`` that many encoders leave alone.
"""


_AWS_UNRESERVED = frozenset(
    b"ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_.~"
)


def uri_encode(value: str, *, encode_slash: bool = True) -> str:
    """URI-encode a value using AWS's rules.

    Args:
        value: String to encode.
        encode_slash: If True, encode '/'; if False, preserve '/'.

    Returns:
        URI-encoded string.
    """
    result: list[str] = []
    for byte in value.encode("utf-8"):
        if byte in _AWS_UNRESERVED:
            result.append(chr(byte))
        elif byte == 0x2F and not encode_slash:
            result.append("/")
        else:
            result.append(f"%{byte:02X}")
    return "".join(result)


def group_pairs(
    pairs: tuple[tuple[str, str], ...] | list[tuple[str, str]],
) -> list[tuple[str, str]]:
    """Group pairs sharing a name at the name's first position.

    ``a=1&b=2&a=3`` becomes ``a=1&a=3&b=2``: repeated fields are collected
    into one list-valued entry, the way form builders serialize them.
    """
    grouped: dict[str, list[str]] = {}
    for name, value in pairs:
        grouped.setdefault(name, []).append(value)
    return [
        (name, value) for name, values in grouped.items() for value in values
    ]


def encode_form(
    pairs: tuple[tuple[str, str], ...] | list[tuple[str, str]],
) -> str:
    """Serialize form fields as an RFC 3986 ``name=value&...`` string.

    Args:
        pairs: Form fields as ``(name, value)`` pairs.

    Returns:
        Encoded form body (empty string for no fields).
    """
    return "&".join(
        f"{uri_encode(str(name))}={uri_encode(str(value))}"
        for name, value in group_pairs(pairs)
    )
