"""General utility functions."""

from __future__ import annotations

import re

from .constants import LDAP_RANGE_OPTION

__all__ = [
    "extract_id_from_dn",
    "parse_range",
]

_RANGE_REGEX = re.compile(r"^\s*(\d+)-(\d+)\s*$")


def extract_id_from_dn(dn: str, attr: str) -> str | None:
    """Extract a user ID from the DN of a group member.

    The ID is the value of the first RDN component of the DN whose attribute
    type is ``attr``, which is the text following ``<attr>=`` up to the next
    comma or the end of the DN. Attribute types are compared
    case-insensitively, since servers such as Active Directory return them
    in upper case. Only whole attribute types at the start of a component
    match, so ``cn=squid=1`` does not provide a ``uid``.

    Parameters
    ----------
    dn
        Member DN, such as ``uid=jdoe,ou=people,dc=example,dc=com``.
    attr
        Attribute holding the user ID, such as ``uid``.

    Returns
    -------
    str or None
        The user ID, or `None` if no component of the DN has that attribute
        type.

    Examples
    --------
    >>> extract_id_from_dn("uid=jdoe,ou=people,dc=example,dc=com", "uid")
    'jdoe'
    >>> extract_id_from_dn("uid=jdoe", "uid")
    'jdoe'
    >>> extract_id_from_dn("CN=Jane Doe,OU=Staff,DC=example,DC=com", "cn")
    'Jane Doe'
    """
    wanted = attr.strip().lower()
    for component in dn.split(","):
        name, sep, value = component.partition("=")
        if sep and name.strip().lower() == wanted:
            return value
    return None


def parse_range(value: str) -> tuple[int, int] | None:
    """Parse the bounds of an LDAP ranged attribute.

    Accepts the attribute name returned by the server (such as
    ``member;range=0-1499``), just the option (``range=0-1499``), or the bare
    bounds (``0-1499``).

    Parameters
    ----------
    value
        Range to parse.

    Returns
    -------
    tuple of int or None
        The start and end of the range, both inclusive, or `None` if the
        range is malformed. The last range returned by Active Directory has
        ``*`` as its end, which also returns `None` since there is nothing
        more to retrieve.
    """
    marker = f"{LDAP_RANGE_OPTION}="
    value = value.lower()
    if marker in value:
        value = value.rsplit(marker, 1)[1]
    match = _RANGE_REGEX.match(value)
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))
