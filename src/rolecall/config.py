"""Configuration for Rolecall.

Rolecall is configured by a YAML file whose path defaults to
:file:`/etc/rolecall/rolecall.yaml` and may be overridden with the
``ROLECALL_CONFIG_PATH`` environment variable. Secrets and some
deployment-specific settings may instead be injected via environment
variables. Only the settings with explicit ``validation_alias`` settings
support configuration via environment variable.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Self, override

import yaml
from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    UrlConstraints,
    model_validator,
)
from pydantic.alias_generators import to_camel
from pydantic_core import Url
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)
from safir.logging import LogLevel, configure_logging

LdapDsn = Annotated[
    Url, UrlConstraints(allowed_schemes=["ldap", "ldaps"], host_required=True)
]
"""DSN for connecting to an LDAP server."""

__all__ = [
    "CamelCaseSettings",
    "Config",
    "EnvFirstSettings",
    "LDAPAttributesConfig",
    "LDAPConfig",
    "LdapDsn",
]


class CamelCaseSettings(BaseSettings):
    """Base class for Pydantic settings supporting camel-case.

    This base class also forbids all extra attributes. It should be used as
    the base class (possibly indirectly) for all Rolecall configuration
    models.
    """

    model_config = SettingsConfigDict(
        alias_generator=to_camel, extra="forbid", populate_by_name=True
    )


class EnvFirstSettings(CamelCaseSettings):
    """Base class for Pydantic settings with environment overrides.

    Classes that inherit from this base class will prioritize environment
    variables over arguments to the class constructor.
    """

    @override
    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Override the sources of settings.

        Deactivate :file:`.env` and secret file support. Allow environment
        variables to override init parameters, since init parameters come
        from the YAML configuration file and environment variables should
        take precedence.
        """
        return (env_settings, init_settings)


class LDAPAttributesConfig(BaseModel):
    """Names of the LDAP attributes copied into a user profile.

    Each field names the LDAP attribute holding the corresponding field of
    `~rolecall.models.ldap.LDAPUser`. The defaults are the usual
    inetOrgPerson attribute names.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, extra="forbid", populate_by_name=True
    )

    uid: str = Field("uid", title="Login ID attribute")

    cn: str = Field("cn", title="Common name attribute")

    sn: str = Field("sn", title="Surname attribute")

    given_name: str = Field("givenName", title="Given name attribute")

    display_name: str = Field("displayName", title="Display name attribute")

    mail: str = Field("mail", title="Email address attribute")

    employee_number: str = Field(
        "employeeNumber", title="Employee number attribute"
    )

    member_of: str = Field(
        "memberOf",
        title="Group membership attribute",
        description=(
            "Multi-valued attribute on the user entry listing the DNs of the"
            " groups of which the user is a member. Every value is returned,"
            " in the order the server returns them."
        ),
    )

    role: str = Field("role", title="Primary role attribute")

    title: str = Field("title", title="Job title attribute")

    ou: str = Field("ou", title="Organizational unit attribute")

    o: str = Field("o", title="Organization attribute")


class LDAPConfig(EnvFirstSettings):
    """Configuration for the LDAP directory.

    All searches, for both groups and users, are subtree searches rooted at
    ``base_dn``.
    """

    url: LdapDsn = Field(
        ...,
        title="LDAP server URL",
        description=(
            "URL of LDAP server to query, including the port if it is not"
            " the default, such as ``ldap://ldap.example.com:389``"
        ),
        validation_alias=AliasChoices("ROLECALL_LDAP_URL", "url"),
    )

    base_dn: str = Field(
        ...,
        title="Base DN for searches",
        description="Base DN under which groups and users are searched for",
        examples=["dc=example,dc=com"],
    )

    user_dn: str | None = Field(
        None,
        title="Simple bind DN for LDAP queries",
        description=(
            "DN of user to bind as with simple bind when querying the LDAP"
            " server. If not set, Rolecall will do an anonymous bind."
        ),
        validation_alias=AliasChoices("ROLECALL_LDAP_USER_DN", "userDn"),
    )

    password: SecretStr | None = Field(
        None,
        title="Simple bind password",
        description=(
            "Password for simple bind authentication to the LDAP server."
            " Only used if ``user_dn`` is set."
        ),
        validation_alias=AliasChoices("ROLECALL_LDAP_PASSWORD", "password"),
    )

    user_id_attr: str = Field(
        "uid",
        title="User ID attribute",
        description=(
            "Attribute holding the user ID. Users are looked up by searching"
            " for this attribute, and it must be the first RDN component of"
            " the member DNs stored in groups."
        ),
    )

    group_object_class: str = Field(
        "groupOfUniqueNames",
        title="LDAP group object class",
        description="Object class of the group entries for roles",
    )

    group_member_attr: str = Field(
        "uniqueMember",
        title="LDAP attribute holding group members",
        description=(
            "Multi-valued attribute of the group entry holding the DNs of"
            " the members. Large values may be returned by the server in"
            " ranges, which Rolecall follows."
        ),
    )

    group_name_attr: str = Field(
        "cn",
        title="LDAP attribute holding the group name",
        description="Attribute of the group entry that matches the role name",
    )

    attributes: LDAPAttributesConfig = Field(
        default_factory=LDAPAttributesConfig,
        title="User attribute names",
        description="LDAP attributes copied into each user profile",
    )

    @model_validator(mode="after")
    def _validate_password(self) -> Self:
        """Ensure a password is provided if a bind DN is set."""
        if self.user_dn and not self.password:
            raise ValueError("password required if userDn is set")
        return self


class Config(EnvFirstSettings):
    """Configuration for Rolecall."""

    log_level: LogLevel = Field(
        LogLevel.INFO,
        title="Logging level",
        description="Python logging level",
        validation_alias=AliasChoices("ROLECALL_LOG_LEVEL", "logLevel"),
    )

    cors_origins: list[str] = Field(
        ["*"],
        title="Allowed CORS origins",
        description=(
            "Origins allowed to make cross-origin requests to the API. The"
            " default allows any origin."
        ),
    )

    ldap: LDAPConfig = Field(
        ...,
        title="LDAP configuration",
        description="Settings for the LDAP directory holding users and roles",
    )

    @classmethod
    def from_file(cls, path: Path) -> Self:
        """Construct a Config object from a configuration file.

        Parameters
        ----------
        path
            Path to the configuration file in YAML.

        Returns
        -------
        Config
            The corresponding `Config` object.
        """
        with path.open("r") as f:
            return cls.model_validate(yaml.safe_load(f))

    def configure_logging(self) -> None:
        """Configure logging based on the Rolecall configuration."""
        configure_logging(name="rolecall", log_level=self.log_level)
