"""Application definition for Rolecall."""

from __future__ import annotations

import json
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from fastapi.responses import PlainTextResponse
from safir.fastapi import ClientRequestError, client_request_error_handler
from safir.logging import configure_uvicorn_logging

from .dependencies.config import config_dependency
from .dependencies.context import context_dependency
from .exceptions import LDAPError
from .handlers import api, internal

__all__ = ["create_app", "create_openapi", "ldap_error_handler"]


def create_app(*, load_config: bool = True) -> FastAPI:
    """Create the FastAPI application.

    This is in a function rather than using a global variable (as is more
    typical for FastAPI) because some middleware depends on configuration
    settings and we therefore want to recreate the application between tests.

    Parameters
    ----------
    load_config
        If set to `False`, do not try to load the configuration. This is used
        primarily for OpenAPI schema generation, where constructing the app is
        required but the configuration won't matter.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        config = config_dependency.config()
        await context_dependency.initialize(config)

        yield

        await context_dependency.aclose()

    app = FastAPI(
        title="Rolecall",
        description=(
            "Rolecall returns the LDAP profiles of the members of the"
            " directory group corresponding to a role."
        ),
        version=version("rolecall"),
        tags_metadata=[
            {
                "name": "user",
                "description": "Lookups of users and role members.",
            },
            {
                "name": "internal",
                "description": "Internal routes used by health checks.",
            },
        ],
        lifespan=lifespan,
    )

    # Add all of the routes.
    app.include_router(api.router)
    app.include_router(internal.router)

    # Load configuration if it is available to us and configure Uvicorn
    # logging.
    if load_config:
        config = config_dependency.config()
        configure_uvicorn_logging()
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_methods=["GET"],
            allow_headers=["*"],
        )

    # Handle exceptions descended from ClientRequestError and LDAP failures.
    app.exception_handler(ClientRequestError)(client_request_error_handler)
    app.exception_handler(LDAPError)(ldap_error_handler)

    return app


async def ldap_error_handler(
    request: Request, exc: LDAPError
) -> PlainTextResponse:
    """Convert an LDAP failure into a plain-text server error.

    The failure has already been logged by the LDAP storage layer.

    Parameters
    ----------
    request
        The request that failed.
    exc
        The LDAP error raised while handling it.

    Returns
    -------
    PlainTextResponse
        A 500 response whose body is the error message.
    """
    return PlainTextResponse(
        str(exc), status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
    )


def create_openapi() -> str:
    """Generate the OpenAPI schema.

    Returns
    -------
    str
        OpenAPI schema as serialized JSON.
    """
    app = create_app(load_config=False)
    schema = get_openapi(
        title=app.title,
        description=app.description,
        version=app.version,
        routes=app.routes,
    )
    return json.dumps(schema)
