"""Constants for Rolecall."""

__all__ = [
    "CONFIG_PATH",
    "LDAP_RANGE_OPTION",
    "LDAP_TIMEOUT",
]

CONFIG_PATH = "/etc/rolecall/rolecall.yaml"
"""Default configuration path."""

LDAP_RANGE_OPTION = "range"
"""Attribute option used by LDAP servers for ranged attribute retrieval.

Servers that cap the number of values returned for a multi-valued attribute
(Active Directory returns at most 1500 values by default) return the
attribute as ``member;range=0-1499`` and expect the client to ask for the
next slice with ``member;range=1500-*``.
"""

LDAP_TIMEOUT = 5.0
"""Timeout (in seconds) for LDAP queries."""
