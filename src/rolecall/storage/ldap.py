"""LDAP storage layer for Rolecall."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping, Sequence
from functools import partial
from typing import Any, TypeVar

import bonsai
from bonsai import LDAPSearchScope
from bonsai.asyncio import AIOConnectionPool
from bonsai.utils import escape_filter_exp
from structlog.stdlib import BoundLogger

from ..config import LDAPConfig
from ..constants import LDAP_RANGE_OPTION, LDAP_TIMEOUT
from ..exceptions import LDAPError
from ..models.ldap import GroupPage, LDAPUser
from ..util import parse_range
from .mapper import LDAPUserMapper

T = TypeVar("T")

_Entry = Mapping[str, Sequence[Any]]

__all__ = ["LDAPStorage"]


class LDAPStorage:
    """LDAP storage layer.

    Parameters
    ----------
    config
        Configuration for LDAP searches.
    pool
        Connection pool for LDAP searches.
    logger
        Logger for debug messages and errors.
    """

    def __init__(
        self, config: LDAPConfig, pool: AIOConnectionPool, logger: BoundLogger
    ) -> None:
        self._config = config
        self._pool = pool
        self._logger = logger.bind(ldap_url=str(self._config.url))
        self._user_mapper = LDAPUserMapper(config.attributes)

    async def check(self) -> None:
        """Check that the LDAP server is answering queries.

        Raises
        ------
        LDAPError
            Raised if the base DN could not be read.
        """
        await self._query(
            self._config.base_dn,
            LDAPSearchScope.BASE,
            "(objectClass=*)",
            ["objectClass"],
        )

    async def get_group_page(self, role: str, start: int) -> GroupPage:
        """Get one range of members of the group for a role.

        Parameters
        ----------
        role
            Name of the role, matched against the group name attribute.
        start
            Offset of the first member to retrieve. If greater than zero,
            the member attribute is requested starting at that offset using
            LDAP range retrieval.

        Returns
        -------
        GroupPage
            Member DNs in this range and the offset of the next range, if
            the server indicated that there are more members.

        Raises
        ------
        LDAPError
            Raised if the search failed or the group entry was invalid.
        """
        member_attr = self._config.group_member_attr
        attrlist = [member_attr]
        if start > 0:
            attrlist.append(f"{member_attr};{LDAP_RANGE_OPTION}={start}-*")
        page = GroupPage()
        await self.search(
            self._build_group_filter(role, start),
            partial(self._read_group_entry, page),
            attrlist=attrlist,
        )
        return page

    async def get_user(self, uid: str) -> LDAPUser | None:
        """Get the profile of a user.

        Parameters
        ----------
        uid
            User ID to search for.

        Returns
        -------
        LDAPUser or None
            The first matching user, or `None` if no user has that ID.

        Raises
        ------
        LDAPError
            Raised if the search failed or the user entry was invalid.
        """
        attr = self._config.user_id_attr
        search = f"({attr}={escape_filter_exp(uid)})"
        users = await self.search(
            search, self._user_mapper, attrlist=self._user_mapper.attrlist
        )
        if not users:
            return None
        return users[0]

    async def search(
        self,
        filter_exp: str,
        mapper: Callable[[_Entry], T],
        *,
        attrlist: list[str] | None = None,
        base: str | None = None,
    ) -> list[T]:
        """Search LDAP and convert each entry found.

        Parameters
        ----------
        filter_exp
            Search filter.
        mapper
            Called on each entry returned by the search. It may return
            `None` if it is only called for its side effects.
        attrlist
            Attributes to retrieve. If not given, retrieve all attributes.
        base
            Base DN of the subtree search, defaulting to the configured
            base DN.

        Returns
        -------
        list
            Results of calling ``mapper`` on each entry, in the order
            returned by the server.

        Raises
        ------
        LDAPError
            Raised if the search failed, or by ``mapper`` itself.
        """
        results = await self._query(
            base or self._config.base_dn,
            LDAPSearchScope.SUB,
            filter_exp,
            attrlist,
        )
        try:
            return [mapper(r) for r in results]
        except LDAPError as e:
            msg = "Cannot process LDAP entry"
            self._logger.exception(msg, ldap_search=filter_exp, error=str(e))
            raise

    def _build_group_filter(self, role: str, start: int) -> str:
        """Build the search filter for the group corresponding to a role."""
        group_class = self._config.group_object_class
        name_attr = self._config.group_name_attr
        search = f"(objectClass={group_class})"
        search += f"({name_attr}={escape_filter_exp(role)})"
        if start > 0:
            member_attr = self._config.group_member_attr
            search += f"({member_attr};{LDAP_RANGE_OPTION}={start}-*)"
        return f"(&{search})"

    def _read_group_entry(self, page: GroupPage, entry: _Entry) -> None:
        """Add the members from a group entry to a page of results.

        The server may return the member attribute under its plain name or,
        if the group is large, under a name carrying the range of values
        returned (``member;range=0-1499``). Some servers instead return a
        separate ``member;range`` attribute whose value is the range. Any of
        those forms is accepted as the range marker.
        """
        page.found = True
        member_attr = self._config.group_member_attr
        plain = member_attr.lower()
        option = f"{plain};{LDAP_RANGE_OPTION}"
        try:
            found_members = False
            marker = None
            for name in entry:
                lower_name = name.lower()
                if lower_name == plain:
                    found_members = True
                    page.members.extend(str(v) for v in entry[name])
                elif lower_name == option:
                    if entry[name]:
                        marker = str(entry[name][0])
                elif lower_name.startswith(option + "="):
                    found_members = True
                    page.members.extend(str(v) for v in entry[name])
                    marker = name
        except Exception as e:
            msg = f"Error processing group members: {e!s}"
            raise LDAPError(msg) from e

        # A range marker without any member values cannot make progress.
        if not found_members:
            return
        bounds = parse_range(marker) if marker else None
        if bounds:
            page.next_start = bounds[1] + 1
            self._logger.debug(
                "More group members available",
                ldap_range=marker,
                next_start=page.next_start,
            )

    async def _query(
        self,
        base: str,
        scope: LDAPSearchScope,
        filter_exp: str,
        attrlist: list[str] | None,
    ) -> list[dict[str, list[Any]]]:
        """Perform an LDAP query using the connection pool.

        Parameters
        ----------
        base
            Base DN of the search.
        scope
            Scope of the search.
        filter_exp
            Search filter.
        attrlist
            List of attributes to retrieve, or `None` to retrieve all of
            them.

        Returns
        -------
        list of dict
            List of result entries, each of which is a dictionary of the
            requested attributes (plus possibly other attributes) to a list
            of their values.

        Raises
        ------
        LDAPError
            Raised if failed to run the search.

        Notes
        -----
        The bonsai connection pool does not keep track of failed connections
        and will keep returning the same connection even if the LDAP server
        has stopped responding (due to a firewall timeout, for example).
        Working around this requires setting a timeout, catching the timeout
        exception, and explicitly closing the connection. A search is
        attempted at most twice.
        """
        logger = self._logger.bind(
            ldap_attrs=attrlist, ldap_base=base, ldap_search=filter_exp
        )

        last_error: Exception | None = None
        try:
            for _ in range(2):
                async with self._pool.spawn() as conn:
                    try:
                        logger.debug("Querying LDAP")
                        return await conn.search(
                            base=base,
                            scope=scope,
                            filter_exp=filter_exp,
                            attrlist=attrlist,
                            timeout=LDAP_TIMEOUT,
                        )
                    except (bonsai.ConnectionError, asyncio.TimeoutError) as e:
                        logger.debug(
                            "Reopening LDAP connection after failure",
                            error=str(e),
                        )
                        last_error = e
                        conn.close()
        except bonsai.LDAPError as e:
            logger.exception("Cannot query LDAP", error=str(e))
            raise LDAPError(f"Error querying LDAP: {e!s}") from e

        # Failed due to timeout or closed connection twice.
        if isinstance(last_error, bonsai.ConnectionError):
            msg = f"Cannot connect to LDAP server: {last_error!s}"
        else:
            msg = f"LDAP query timed out after {LDAP_TIMEOUT}s"
        logger.error("Cannot query LDAP", error=msg)
        raise LDAPError(msg) from last_error
