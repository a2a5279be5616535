"""
Credential encoding helpers.

Authenticator output (credential ids, public keys, challenges, client data)
is raw bytes; everything we persist or send over JSON is unpadded base64url
text. These helpers are the only place that conversion happens.
"""

import binascii
import re

from webauthn.helpers import base64url_to_bytes, bytes_to_base64url

# Tolerates the trailing padding some browsers/libraries still emit
BASE64URL_PATTERN = re.compile(r"^[A-Za-z0-9_-]+={0,2}$")


class EncodingError(ValueError):
    """Raised when a value is not valid base64url text."""

    pass


def is_base64url(value: object) -> bool:
    """Check whether a value is a non-empty base64url string."""
    return isinstance(value, str) and bool(BASE64URL_PATTERN.match(value))


def ensure_base64url(value: object, name: str = "value") -> str:
    """
    Validate and normalize a base64url field.

    Args:
        value: The candidate value
        name: Field name used in the error message

    Returns:
        The stripped base64url string

    Raises:
        EncodingError: If the value is not a string or not base64url
    """
    if not isinstance(value, str):
        raise EncodingError(f"{name} must be a string")
    value = value.strip()
    if not is_base64url(value):
        raise EncodingError(f"{name} must be a base64url string")
    return value


def encode_bytes(data: bytes | str | None) -> str:
    """
    Encode raw bytes as unpadded base64url text.

    Strings are assumed to be encoded already and returned unchanged;
    empty input encodes to an empty string.
    """
    if not data:
        return ""
    if isinstance(data, str):
        return data
    return bytes_to_base64url(data)


def decode_text(value: str, name: str = "value") -> bytes:
    """
    Decode base64url text back to raw bytes.

    Raises:
        EncodingError: If the text is not valid base64url
    """
    value = ensure_base64url(value, name)
    try:
        return base64url_to_bytes(value.rstrip("="))
    except (binascii.Error, ValueError) as e:
        raise EncodingError(f"{name} could not be decoded") from e
