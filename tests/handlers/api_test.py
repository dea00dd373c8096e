"""Tests for the ``/api/ldap`` routes."""

from __future__ import annotations

import json
import logging

import pytest
from _pytest.logging import LogCaptureFixture
from asgi_lifespan import LifespanManager
from httpx import ASGITransport, AsyncClient

from rolecall.main import create_app

from ..support.config import configure
from ..support.ldap import MockLDAP


def _dn(uid: str) -> str:
    return f"uid={uid},ou=people,dc=example,dc=com"


@pytest.mark.asyncio
async def test_get_users(client: AsyncClient, mock_ldap: MockLDAP) -> None:
    mock_ldap.add_test_group("tellers", [_dn("alice"), _dn("ghost")])
    mock_ldap.add_test_user(
        "alice",
        {
            "uid": ["alice"],
            "givenName": ["Alice"],
            "displayName": ["Alice Example"],
            "employeeNumber": ["1001"],
            "memberOf": ["cn=tellers,ou=groups,dc=example,dc=com"],
        },
    )

    r = await client.get("/api/ldap/users", params={"role": "tellers"})
    assert r.status_code == 200
    assert r.json() == [
        {
            "uid": "alice",
            "cn": None,
            "sn": None,
            "givenName": "Alice",
            "displayName": "Alice Example",
            "mail": None,
            "employeeNumber": "1001",
            "memberOf": ["cn=tellers,ou=groups,dc=example,dc=com"],
            "role": None,
            "title": None,
            "ou": None,
            "o": None,
        }
    ]


@pytest.mark.asyncio
async def test_get_users_empty(
    client: AsyncClient, mock_ldap: MockLDAP
) -> None:
    r = await client.get("/api/ldap/users", params={"role": "nobody"})
    assert r.status_code == 200
    assert r.json() == []


@pytest.mark.asyncio
async def test_get_users_no_role(
    client: AsyncClient, mock_ldap: MockLDAP
) -> None:
    r = await client.get("/api/ldap/users")
    assert r.status_code == 422
    r = await client.get("/api/ldap/users", params={"role": ""})
    assert r.status_code == 422
    assert mock_ldap.searches == []


@pytest.mark.asyncio
async def test_get_users_error(
    client: AsyncClient, mock_ldap: MockLDAP
) -> None:
    mock_ldap.fail_search_for_test(mock_ldap.group_filter("tellers"))

    r = await client.get("/api/ldap/users", params={"role": "tellers"})
    assert r.status_code == 500
    assert r.headers["Content-Type"].startswith("text/plain")
    assert r.text.startswith("Error retrieving users for role 'tellers': ")


@pytest.mark.asyncio
async def test_get_user(client: AsyncClient, mock_ldap: MockLDAP) -> None:
    mock_ldap.add_test_user(
        "bob", {"uid": ["bob"], "mail": ["bob@example.com"], "ou": ["Ops"]}
    )

    r = await client.get("/api/ldap/users/bob")
    assert r.status_code == 200
    data = r.json()
    assert data["uid"] == "bob"
    assert data["mail"] == "bob@example.com"
    assert data["ou"] == "Ops"
    assert data["memberOf"] is None

    r = await client.get("/api/ldap/users/nobody")
    assert r.status_code == 404
    assert r.json() == {
        "detail": [
            {
                "loc": ["path", "uid"],
                "msg": "User nobody not found",
                "type": "not_found",
            }
        ]
    }


@pytest.mark.asyncio
async def test_get_user_error(
    client: AsyncClient, mock_ldap: MockLDAP
) -> None:
    mock_ldap.fail_search_for_test("(uid=bob)")

    r = await client.get("/api/ldap/users/bob")
    assert r.status_code == 500
    assert r.headers["Content-Type"].startswith("text/plain")
    assert r.text.startswith("Error retrieving user details for uid 'bob': ")


@pytest.mark.asyncio
async def test_error_logging(
    client: AsyncClient, mock_ldap: MockLDAP, caplog: LogCaptureFixture
) -> None:
    mock_ldap.fail_search_for_test(mock_ldap.group_filter("tellers"))

    caplog.clear()
    r = await client.get("/api/ldap/users", params={"role": "tellers"})
    assert r.status_code == 500

    # The failure is logged once, with the context of the request.
    errors = [
        json.loads(message)
        for _, level, message in caplog.record_tuples
        if level >= logging.ERROR
    ]
    assert len(errors) == 1
    assert errors[0]["event"] == "Cannot query LDAP"
    assert errors[0]["role"] == "tellers"
    assert errors[0]["ldap_search"] == mock_ldap.group_filter("tellers")
    assert errors[0]["httpRequest"]["requestUrl"].startswith(
        "https://example.com/api/ldap/users"
    )


@pytest.mark.asyncio
async def test_cors(client: AsyncClient, mock_ldap: MockLDAP) -> None:
    r = await client.get(
        "/api/ldap/users",
        params={"role": "x"},
        headers={"Origin": "https://elsewhere.example"},
    )
    assert r.status_code == 200
    assert r.headers["Access-Control-Allow-Origin"] == "*"


@pytest.mark.asyncio
async def test_cors_restricted(mock_ldap: MockLDAP) -> None:
    configure("custom")
    app = create_app()
    async with LifespanManager(app):
        transport = ASGITransport(app=app)
        base_url = "https://example.com/"
        async with AsyncClient(transport=transport, base_url=base_url) as c:
            r = await c.get(
                "/api/ldap/users",
                params={"role": "x"},
                headers={"Origin": "https://portal.example.com"},
            )
            assert r.status_code == 200
            assert (
                r.headers["Access-Control-Allow-Origin"]
                == "https://portal.example.com"
            )

            r = await c.get(
                "/api/ldap/users",
                params={"role": "x"},
                headers={"Origin": "https://elsewhere.example"},
            )
            assert r.status_code == 200
            assert "Access-Control-Allow-Origin" not in r.headers
