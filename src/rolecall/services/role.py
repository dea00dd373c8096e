"""Lookups of the users holding a role."""

from __future__ import annotations

from structlog.stdlib import BoundLogger

from ..config import LDAPConfig
from ..exceptions import LDAPError
from ..models.ldap import LDAPUser, MemberRange
from ..storage.ldap import LDAPStorage
from ..util import extract_id_from_dn

__all__ = ["RoleService"]


class RoleService:
    """Resolve roles to the profiles of their members.

    A role is an LDAP group whose name matches the role name. Its members are
    read from the group's member attribute, following LDAP range retrieval
    for large groups, and each member's profile is then looked up
    individually.

    Parameters
    ----------
    config
        LDAP configuration.
    ldap
        The underlying LDAP query layer.
    logger
        Logger to use.
    """

    def __init__(
        self, *, config: LDAPConfig, ldap: LDAPStorage, logger: BoundLogger
    ) -> None:
        self._config = config
        self._ldap = ldap
        self._logger = logger

    async def get_user(self, uid: str) -> LDAPUser | None:
        """Get the profile of a single user.

        Parameters
        ----------
        uid
            User ID of the user.

        Returns
        -------
        LDAPUser or None
            Profile of the user, or `None` if the user was not found.

        Raises
        ------
        LDAPError
            Raised if the LDAP search failed.
        """
        logger = self._logger.bind(uid=uid)
        logger.debug("Searching for user details")
        try:
            user = await self._ldap.get_user(uid)
        except LDAPError as e:
            msg = f"Error retrieving user details for uid '{uid}': {e!s}"
            raise LDAPError(msg) from e
        if user:
            logger.debug("Found user details")
        else:
            logger.warning("No user found with this uid")
        return user

    async def get_users_by_role(self, role: str) -> list[LDAPUser]:
        """Get the profiles of all users holding a role.

        Parameters
        ----------
        role
            Name of the role.

        Returns
        -------
        list of LDAPUser
            Profiles of the members of the group for that role, at most one
            per user ID, in the order in which the group lists them. Members
            that could not be found in LDAP are omitted. If there is no group
            for the role, the list is empty.

        Raises
        ------
        LDAPError
            Raised if the search for the group failed.
        """
        logger = self._logger.bind(role=role)
        logger.info("Searching for users with role")
        users: list[LDAPUser] = []
        seen: set[str] = set()
        resolved: set[str] = set()
        state = MemberRange()
        try:
            while state.more:
                page = await self._ldap.get_group_page(role, state.start)
                if not page.found:
                    if state.start == 0:
                        logger.info("No group found for role")
                    break
                logger.debug(
                    "Found group members",
                    start=state.start,
                    count=len(page.members),
                )
                for dn in page.members:
                    uid = extract_id_from_dn(dn, self._config.user_id_attr)
                    if uid is None:
                        logger.warning("Cannot find user ID in DN", dn=dn)
                        continue
                    if uid in seen:
                        continue
                    seen.add(uid)
                    user = await self._get_member(uid, logger)
                    if user and (user.uid or uid) not in resolved:
                        resolved.add(user.uid or uid)
                        users.append(user)

                # Only continue if the server returned a range that moves
                # past the current offset.
                next_start = page.next_start
                if next_start is not None and next_start > state.start:
                    state.start = next_start
                else:
                    state.more = False
        except LDAPError as e:
            msg = f"Error retrieving users for role '{role}': {e!s}"
            raise LDAPError(msg) from e

        logger.info("Found users with role", count=len(users))
        return users

    async def _get_member(
        self, uid: str, logger: BoundLogger
    ) -> LDAPUser | None:
        """Look up one member of a group, omitting it on failure."""
        try:
            user = await self._ldap.get_user(uid)
        except LDAPError as e:
            msg = "Cannot retrieve group member, omitting"
            logger.warning(msg, uid=uid, error=str(e))
            return None
        if user:
            logger.debug("Found user details for group member", uid=uid)
        return user
