"""User-data fingerprinting and base64 normalization.

User-data may be supplied either as plain text or already base64 encoded.
Both forms of the same content must produce the same fingerprint, so the
fingerprint is always taken over the decoded bytes when decoding succeeds.

The "auto" mode is a heuristic: a plain string that happens to be valid
base64 of something else is treated as encoded. Callers that know the
encoding should pass ``encoding="raw"`` or ``encoding="base64"``.
"""

import base64
import binascii
import hashlib
from typing import Literal, Optional

from cidata.errors import UserDataEncodingError


UserDataEncoding = Literal["auto", "raw", "base64"]


def _b64decode(value: str) -> Optional[bytes]:
    """Strict standard base64 decoding, None when the value is not base64."""
    # Line breaks in wrapped base64 are ignored
    value = value.replace("\r", "").replace("\n", "")
    try:
        return base64.b64decode(value.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError, ValueError):
        return None


def fingerprint(user_data: str, encoding: UserDataEncoding = "auto") -> str:
    """Return the lowercase hex SHA-1 of the user-data content."""
    if encoding == "raw":
        payload = user_data.encode("utf-8")
    elif encoding == "base64":
        payload = _b64decode(user_data)
        if payload is None:
            raise UserDataEncodingError("user_data is not valid base64")
    else:
        payload = _b64decode(user_data)
        if payload is None:
            payload = user_data.encode("utf-8")

    return hashlib.sha1(payload).hexdigest()


def decode_user_data(user_data: str, encoding: UserDataEncoding = "auto") -> str:
    """Return user-data as text, decoding base64 where applicable."""
    if not user_data or encoding == "raw":
        return user_data

    decoded = _b64decode(user_data)
    text = None
    if decoded is not None:
        try:
            text = decoded.decode("utf-8")
        except UnicodeDecodeError:
            text = None

    if text is not None:
        return text
    if encoding == "base64":
        raise UserDataEncodingError("user_data is not valid base64 of UTF-8 text")
    return user_data


def encode_user_data(text: str) -> str:
    """Standard base64 of the UTF-8 text."""
    return base64.b64encode(text.encode("utf-8")).decode("ascii")
