"""Exceptions for Rolecall."""

from __future__ import annotations

from fastapi import status
from safir.fastapi import ClientRequestError
from safir.models import ErrorLocation

__all__ = [
    "LDAPError",
    "NotFoundError",
]


class LDAPError(Exception):
    """An LDAP operation failed.

    This is the only error raised for directory problems. It wraps the
    underlying connection, protocol, or attribute mapping error, which is
    available as the ``__cause__`` of the exception.
    """


class NotFoundError(ClientRequestError):
    """The named user does not exist in LDAP."""

    error = "not_found"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str) -> None:
        super().__init__(message, ErrorLocation.path, ["uid"])
