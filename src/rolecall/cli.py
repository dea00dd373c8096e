"""Command-line interface for Rolecall."""

from __future__ import annotations

import sys
from pathlib import Path

import click
import uvicorn
from pydantic import TypeAdapter
from safir.asyncio import run_with_asyncio
from safir.click import display_help

from .dependencies.config import config_dependency
from .factory import Factory
from .main import create_openapi
from .models.ldap import LDAPUser

__all__ = [
    "help",
    "main",
    "openapi_schema",
    "run",
    "user",
    "users",
]

_users_adapter = TypeAdapter(list[LDAPUser])


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(message="%(version)s")
def main() -> None:
    """Command-line interface for rolecall."""


@main.command()
@click.argument("topic", default=None, required=False, nargs=1)
@click.pass_context
def help(ctx: click.Context, topic: str | None) -> None:
    """Show help for any command."""
    display_help(main, ctx, topic)


@main.command()
@click.option(
    "--output",
    default=None,
    type=click.Path(path_type=Path),
    help="Output path (output to stdout if not given).",
)
def openapi_schema(*, output: Path | None) -> None:
    """Generate the OpenAPI schema."""
    schema = create_openapi()
    if output:
        output.parent.mkdir(exist_ok=True)
        output.write_text(schema)
    else:
        sys.stdout.write(schema)


@main.command()
@click.option(
    "--port", default=8080, type=int, help="Port to run the application on."
)
def run(*, port: int) -> None:
    """Run the application (for testing only)."""
    uvicorn.run(
        "rolecall.main:create_app",
        factory=True,
        port=port,
        reload=True,
        reload_dirs=["src"],
    )


@main.command()
@click.argument("uid")
@click.option(
    "--config-path",
    envvar="ROLECALL_CONFIG_PATH",
    type=click.Path(path_type=Path),
    default=None,
    help="Application configuration file.",
)
@run_with_asyncio
async def user(uid: str, *, config_path: Path | None) -> None:
    """Print the LDAP profile of a user as JSON."""
    if config_path:
        config_dependency.set_config_path(config_path)
    config = await config_dependency()
    async with Factory.standalone(config) as factory:
        role_service = factory.create_role_service()
        result = await role_service.get_user(uid)
    if not result:
        raise click.ClickException(f"User {uid} not found")
    sys.stdout.write(result.model_dump_json(by_alias=True) + "\n")


@main.command()
@click.option("--role", required=True, help="Name of the role.")
@click.option(
    "--config-path",
    envvar="ROLECALL_CONFIG_PATH",
    type=click.Path(path_type=Path),
    default=None,
    help="Application configuration file.",
)
@run_with_asyncio
async def users(*, role: str, config_path: Path | None) -> None:
    """Print the LDAP profiles of all users with a role as JSON."""
    if config_path:
        config_dependency.set_config_path(config_path)
    config = await config_dependency()
    async with Factory.standalone(config) as factory:
        role_service = factory.create_role_service()
        results = await role_service.get_users_by_role(role)
    output = _users_adapter.dump_json(results, by_alias=True)
    sys.stdout.write(output.decode() + "\n")
