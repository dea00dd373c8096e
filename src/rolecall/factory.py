"""Create Rolecall components."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import aclosing, asynccontextmanager
from dataclasses import dataclass
from typing import Self

import structlog
from bonsai import LDAPClient
from bonsai.asyncio import AIOConnectionPool
from structlog.stdlib import BoundLogger

from .config import Config
from .services.health import HealthCheckService
from .services.role import RoleService
from .storage.ldap import LDAPStorage

__all__ = ["Factory", "ProcessContext"]


@dataclass(frozen=True, slots=True)
class ProcessContext:
    """Per-process application context.

    This object caches all of the per-process singletons that can be reused
    for every request and only need to be recreated if the application
    configuration changes.
    """

    config: Config
    """Rolecall's configuration."""

    ldap_pool: AIOConnectionPool
    """Connection pool to talk to LDAP."""

    @classmethod
    async def from_config(cls, config: Config) -> Self:
        """Create a new process context from the Rolecall configuration.

        Parameters
        ----------
        config
            The Rolecall configuration.

        Returns
        -------
        ProcessContext
            Shared context for a Rolecall process.
        """
        client = LDAPClient(str(config.ldap.url))
        if config.ldap.user_dn and config.ldap.password:
            client.set_credentials(
                "SIMPLE",
                user=config.ldap.user_dn,
                password=config.ldap.password.get_secret_value(),
            )
        return cls(config=config, ldap_pool=AIOConnectionPool(client))

    async def aclose(self) -> None:
        """Clean up a process context.

        Called during shutdown, or before recreating the process context using
        a different configuration.
        """
        await self.ldap_pool.close()


class Factory:
    """Build Rolecall components.

    Uses the contents of a `ProcessContext` to construct the components of the
    application on demand.

    Parameters
    ----------
    context
        Shared process context.
    logger
        Logger to use for errors.
    """

    @classmethod
    @asynccontextmanager
    async def standalone(cls, config: Config) -> AsyncIterator[Self]:
        """Async context manager for Rolecall components.

        Intended for command-line use outside of the web application.

        Parameters
        ----------
        config
            Rolecall configuration.

        Yields
        ------
        Factory
            The factory. Must be used as an async context manager.

        Examples
        --------
        .. code-block:: python

           async with Factory.standalone(config) as factory:
               role_service = factory.create_role_service()
               users = await role_service.get_users_by_role(role)
        """
        logger = structlog.get_logger("rolecall")
        context = await ProcessContext.from_config(config)
        factory = cls(context, logger)
        async with aclosing(factory):
            yield factory

    def __init__(self, context: ProcessContext, logger: BoundLogger) -> None:
        self._context = context
        self._logger = logger

    async def aclose(self) -> None:
        """Shut down the factory and the internal process context."""
        await self._context.aclose()

    def create_health_check_service(self) -> HealthCheckService:
        """Create a service for performing health checks.

        Returns
        -------
        HealthCheckService
            Newly-created health check service.
        """
        return HealthCheckService(ldap=self.create_ldap_storage())

    def create_ldap_storage(self) -> LDAPStorage:
        """Create the LDAP storage layer.

        Returns
        -------
        LDAPStorage
            Newly-created LDAP storage.
        """
        return LDAPStorage(
            self._context.config.ldap, self._context.ldap_pool, self._logger
        )

    def create_role_service(self) -> RoleService:
        """Create a service for looking up the users holding a role.

        Returns
        -------
        RoleService
            Newly-created role service.
        """
        return RoleService(
            config=self._context.config.ldap,
            ldap=self.create_ldap_storage(),
            logger=self._logger,
        )

    def set_logger(self, logger: BoundLogger) -> None:
        """Replace the internal logger.

        Used by the context dependency to update the logger for all
        newly-created components when it's rebound with additional context.

        Parameters
        ----------
        logger
            New logger.
        """
        self._logger = logger
