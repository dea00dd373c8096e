"""Tests for utility functions."""

from __future__ import annotations

from rolecall.util import extract_id_from_dn, parse_range


def test_extract_id_from_dn() -> None:
    dn = "uid=jdoe,ou=people,dc=example,dc=com"
    assert extract_id_from_dn(dn, "uid") == "jdoe"
    assert extract_id_from_dn("uid=jdoe", "uid") == "jdoe"
    assert extract_id_from_dn("ou=people,uid=jdoe", "uid") == "jdoe"
    assert extract_id_from_dn("CN=Jane Doe,OU=Staff", "CN") == "Jane Doe"
    assert extract_id_from_dn("cn=jdoe,ou=people", "uid") is None
    assert extract_id_from_dn("uid=,ou=people", "uid") == ""

    # Attribute types are case-insensitive.
    ad_dn = "CN=Jane Doe,OU=Staff,DC=corp,DC=example,DC=com"
    assert extract_id_from_dn(ad_dn, "cn") == "Jane Doe"
    assert extract_id_from_dn("Uid=jdoe,ou=people", "UID") == "jdoe"

    # Only whole attribute types at the start of a component match.
    dn = "cn=squid=1,ou=people,uid=real,dc=example,dc=com"
    assert extract_id_from_dn(dn, "uid") == "real"
    assert extract_id_from_dn("cn=squid=1,ou=people", "uid") is None


def test_parse_range() -> None:
    assert parse_range("range=0-999") == (0, 999)
    assert parse_range("0-1499") == (0, 1499)
    assert parse_range("member;range=1500-2999") == (1500, 2999)
    assert parse_range("uniqueMember;range=1000-1999") == (1000, 1999)

    # The last range has no numeric end and there is nothing more to fetch.
    assert parse_range("member;range=3000-*") is None
    assert parse_range("range=") is None
    assert parse_range("range=0-1-2") is None
    assert parse_range("range=a-b") is None
    assert parse_range("") is None
