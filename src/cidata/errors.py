"""Exceptions raised by cidata."""

from typing import Optional


class CidataError(Exception):
    """Base class for all cidata errors."""
    pass


class ConnectionUnavailable(CidataError):
    """The virtualization backend connection is missing or unusable."""
    pass


class PackagingError(CidataError):
    """Building the seed image failed."""
    pass


class BackendError(CidataError):
    """The storage backend rejected an operation."""
    pass


class NotFoundError(BackendError):
    """A volume key no longer resolves to a volume."""
    pass


class ParseError(CidataError):
    """A downloaded image is not a seed image of the expected shape."""
    pass


class UserDataEncodingError(CidataError, ValueError):
    """User-data declared as base64 could not be decoded."""
    pass


class PartialCreateError(CidataError):
    """The volume was created but reading it back failed.

    The volume key is kept on the exception so callers can still record
    the identity of the volume that now exists.
    """

    def __init__(self, message: str, volume_key: str):
        super().__init__(message)
        self.volume_key = volume_key


def describe(error: Optional[BaseException]) -> str:
    """Render an error with its cause for log and CLI output."""
    if error is None:
        return ""
    if error.__cause__ is not None and str(error.__cause__) not in str(error):
        return f"{error}: {error.__cause__}"
    return str(error)
