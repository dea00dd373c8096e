"""Tests for mapping LDAP entries to user profiles."""

from __future__ import annotations

import pytest

from rolecall.config import LDAPAttributesConfig
from rolecall.exceptions import LDAPError
from rolecall.models.ldap import LDAPUser
from rolecall.storage.mapper import LDAPUserMapper


def test_map_user() -> None:
    mapper = LDAPUserMapper(LDAPAttributesConfig())
    entry = {
        "uid": ["jdoe"],
        "cn": ["John Doe"],
        "sn": ["Doe"],
        "givenName": ["John"],
        "displayName": ["Johnny Doe"],
        "mail": ["jdoe@example.com", "john.doe@example.com"],
        "employeeNumber": ["100234"],
        "memberOf": [
            "cn=tellers,ou=groups,dc=example,dc=com",
            "cn=staff,ou=groups,dc=example,dc=com",
        ],
        "role": ["teller"],
        "title": ["Clerk"],
        "ou": ["Retail Banking"],
        "o": ["Example Bank"],
        "objectClass": ["inetOrgPerson"],
    }

    user = mapper(entry)
    assert user == LDAPUser(
        uid="jdoe",
        cn="John Doe",
        sn="Doe",
        given_name="John",
        display_name="Johnny Doe",
        mail="jdoe@example.com",
        employee_number="100234",
        member_of=[
            "cn=tellers,ou=groups,dc=example,dc=com",
            "cn=staff,ou=groups,dc=example,dc=com",
        ],
        role="teller",
        title="Clerk",
        ou="Retail Banking",
        o="Example Bank",
    )
    assert user.model_dump(by_alias=True) == {
        "uid": "jdoe",
        "cn": "John Doe",
        "sn": "Doe",
        "givenName": "John",
        "displayName": "Johnny Doe",
        "mail": "jdoe@example.com",
        "employeeNumber": "100234",
        "memberOf": [
            "cn=tellers,ou=groups,dc=example,dc=com",
            "cn=staff,ou=groups,dc=example,dc=com",
        ],
        "role": "teller",
        "title": "Clerk",
        "ou": "Retail Banking",
        "o": "Example Bank",
    }


def test_map_empty() -> None:
    mapper = LDAPUserMapper(LDAPAttributesConfig())

    user = mapper({})
    assert user == LDAPUser()
    assert all(v is None for v in user.model_dump().values())

    user = mapper({"uid": ["jdoe"], "mail": [], "memberOf": []})
    assert user == LDAPUser(uid="jdoe")


def test_map_custom_attributes() -> None:
    attributes = LDAPAttributesConfig(
        uid="sAMAccountName", mail="userPrincipalName", title="jobTitle"
    )
    mapper = LDAPUserMapper(attributes)
    entry = {
        "sAMAccountName": ["jdoe"],
        "userPrincipalName": ["jdoe@corp.example.com"],
        "jobTitle": ["Manager"],
        "uid": ["ignored"],
        "title": ["ignored"],
    }

    user = mapper(entry)
    assert user == LDAPUser(
        uid="jdoe", mail="jdoe@corp.example.com", title="Manager"
    )
    assert "sAMAccountName" in mapper.attrlist
    assert "uid" not in mapper.attrlist


def test_map_non_string() -> None:
    mapper = LDAPUserMapper(LDAPAttributesConfig())

    user = mapper({"uid": ["jdoe"], "employeeNumber": [100234]})
    assert user.employee_number == "100234"


def test_map_invalid() -> None:
    mapper = LDAPUserMapper(LDAPAttributesConfig())

    with pytest.raises(LDAPError):
        mapper({"uid": 17})


def test_attrlist() -> None:
    mapper = LDAPUserMapper(LDAPAttributesConfig())

    assert mapper.attrlist == [
        "uid",
        "cn",
        "sn",
        "givenName",
        "displayName",
        "mail",
        "employeeNumber",
        "role",
        "title",
        "ou",
        "o",
        "memberOf",
    ]
