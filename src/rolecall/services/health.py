"""Health check for the Rolecall service."""

from __future__ import annotations

from ..storage.ldap import LDAPStorage

__all__ = ["HealthCheckService"]


class HealthCheckService:
    """Check the health of the Rolecall service.

    Intended to be invoked via a Kubernetes liveness check and test the
    underlying LDAP connection.

    Parameters
    ----------
    ldap
        The underlying LDAP query layer.
    """

    def __init__(self, *, ldap: LDAPStorage) -> None:
        self._ldap = ldap

    async def check(self) -> None:
        """Check the health of the LDAP server.

        Raises
        ------
        LDAPError
            Raised if the LDAP server could not be queried.
        """
        await self._ldap.check()
