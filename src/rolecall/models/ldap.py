"""Data models for LDAP."""

from __future__ import annotations

from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

__all__ = [
    "GroupPage",
    "LDAPUser",
    "MemberRange",
]


class LDAPUser(BaseModel):
    """Profile of a user from LDAP.

    Every field is optional. An attribute missing from the LDAP entry leaves
    the corresponding field unset.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True
    )

    uid: str | None = Field(
        None, title="User ID", description="Login username", examples=["jdoe"]
    )

    cn: str | None = Field(
        None, title="Common name", examples=["John Doe"]
    )

    sn: str | None = Field(None, title="Surname", examples=["Doe"])

    given_name: str | None = Field(None, title="Given name", examples=["John"])

    display_name: str | None = Field(
        None, title="Display name", examples=["John Doe"]
    )

    mail: str | None = Field(
        None, title="Email address", examples=["jdoe@example.com"]
    )

    employee_number: str | None = Field(
        None, title="Employee number", examples=["100234"]
    )

    member_of: list[str] | None = Field(
        None,
        title="Group memberships",
        description="DNs of the groups of which the user is a member",
        examples=[["cn=tellers,ou=groups,dc=example,dc=com"]],
    )

    role: str | None = Field(None, title="Primary role", examples=["teller"])

    title: str | None = Field(None, title="Job title", examples=["Clerk"])

    ou: str | None = Field(
        None, title="Organizational unit", examples=["Retail Banking"]
    )

    o: str | None = Field(None, title="Organization", examples=["Example"])


@dataclass
class MemberRange:
    """Pagination state for reading the members of one group.

    Only lives for the duration of one role lookup.
    """

    start: int = 0
    """Offset of the first member value to request."""

    more: bool = True
    """Whether another group search is needed."""


@dataclass
class GroupPage:
    """Member DNs returned by one search for a group."""

    members: list[str] = field(default_factory=list)
    """Member DNs, in the order returned by the server."""

    found: bool = False
    """Whether any group entry matched the search."""

    next_start: int | None = None
    """Offset of the next range of members, if the server returned one."""
