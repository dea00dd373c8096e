"""Conversion of LDAP entries into user profiles."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from ..config import LDAPAttributesConfig
from ..exceptions import LDAPError
from ..models.ldap import LDAPUser

__all__ = ["LDAPUserMapper"]

_SINGLE_VALUED = (
    "uid",
    "cn",
    "sn",
    "given_name",
    "display_name",
    "mail",
    "employee_number",
    "role",
    "title",
    "ou",
    "o",
)
"""Profile fields taken from the first value of their attribute."""


class LDAPUserMapper:
    """Map LDAP entries to user profiles.

    An instance is a callable suitable for passing to
    `~rolecall.storage.ldap.LDAPStorage.search`.

    Parameters
    ----------
    attributes
        Names of the LDAP attributes holding each profile field.
    """

    def __init__(self, attributes: LDAPAttributesConfig) -> None:
        self._attributes = attributes

    def __call__(self, entry: Mapping[str, Sequence[Any]]) -> LDAPUser:
        """Convert an LDAP entry to a user profile.

        Parameters
        ----------
        entry
            Attributes of the entry, mapping each attribute name to its
            list of values.

        Returns
        -------
        LDAPUser
            The corresponding profile. Fields whose attribute is missing from
            the entry are left unset.

        Raises
        ------
        LDAPError
            Raised if the values of the entry could not be read.
        """
        try:
            data: dict[str, Any] = {}
            for field in _SINGLE_VALUED:
                attr = getattr(self._attributes, field)
                if entry.get(attr):
                    data[field] = str(entry[attr][0])
            member_of = entry.get(self._attributes.member_of)
            if member_of:
                data["member_of"] = [str(v) for v in member_of]
            return LDAPUser(**data)
        except Exception as e:
            msg = f"Error mapping LDAP attributes to user: {e!s}"
            raise LDAPError(msg) from e

    @property
    def attrlist(self) -> list[str]:
        """LDAP attributes to request when searching for users."""
        attrs = [getattr(self._attributes, f) for f in _SINGLE_VALUED]
        attrs.append(self._attributes.member_of)
        return list(dict.fromkeys(attrs))
