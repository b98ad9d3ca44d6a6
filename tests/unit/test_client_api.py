# tests/unit/test_client_api.py

import json

import httpx
import pytest

from app.client.api import ClientError, WorkforceClient


def client_for(handler):
    return WorkforceClient("http://api.test", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_login_posts_credentials():
    seen = {}

    def handler(request: httpx.Request):
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"access_token": "tok", "user": {"role": "user"}})

    async with client_for(handler) as client:
        body = await client.login("bob@example.com", "Str0ngP@ss")

    assert seen["path"] == "/api/v1/auth/login"
    assert seen["body"] == {"email": "bob@example.com", "password": "Str0ngP@ss"}
    assert body["access_token"] == "tok"


@pytest.mark.asyncio
async def test_bearer_header_is_sent():
    def handler(request: httpx.Request):
        assert request.headers["authorization"] == "Bearer tok"
        return httpx.Response(200, json={"timeout_minutes": 15, "warning_minutes": 2})

    async with client_for(handler) as client:
        body = await client.get_session_timeout("tok")

    assert body["timeout_minutes"] == 15


@pytest.mark.asyncio
async def test_error_body_becomes_client_error():
    def handler(request: httpx.Request):
        return httpx.Response(
            400,
            json={"success": False, "error": "Invalid input", "details": [{"field": "password", "message": "x"}]},
        )

    async with client_for(handler) as client:
        with pytest.raises(ClientError) as exc:
            await client.set_password("tok", "weak")

    assert exc.value.status_code == 400
    assert exc.value.message == "Invalid input"
    assert exc.value.details[0]["field"] == "password"


@pytest.mark.asyncio
async def test_non_json_error():
    def handler(request: httpx.Request):
        return httpx.Response(502, text="bad gateway")

    async with client_for(handler) as client:
        with pytest.raises(ClientError) as exc:
            await client.validate_invite("tok")

    assert exc.value.status_code == 502
    assert exc.value.message == "Bad Gateway"


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [["unexpected", "list"], "plain string", 42])
async def test_json_error_that_is_not_an_object(payload):
    def handler(request: httpx.Request):
        return httpx.Response(500, json=payload)

    async with client_for(handler) as client:
        with pytest.raises(ClientError) as exc:
            await client.set_password("tok", "Str0ngP@ss")

    assert exc.value.status_code == 500
    assert exc.value.message == "Internal Server Error"
    assert exc.value.details is None


@pytest.mark.asyncio
async def test_list_pending_users():
    seen = {}

    def handler(request: httpx.Request):
        seen["path"] = request.url.path
        seen["query"] = dict(request.url.params)
        return httpx.Response(200, json={"success": True, "users": []})

    async with client_for(handler) as client:
        body = await client.list_users("tok", pending_only=True)

    assert seen["path"] == "/api/v1/users"
    assert seen["query"] == {"password_set": "false"}
    assert body["users"] == []
