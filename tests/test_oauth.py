import httpx
import pytest
from authlib.integrations.starlette_client import OAuthError
from fastapi.testclient import TestClient

from app.main import create_app

from conftest import read_users, register

DISCORD_PROFILE = {
    "id": "80351110224678912",
    "username": "nelly",
    "global_name": "Nelly",
    "email": "nelly@example.com",
    "avatar": "8342729096ea3675442027381ff50dfe",
}


@pytest.fixture
def discord_app(settings):
    return create_app(
        settings.model_copy(
            update={"DISCORD_CLIENT_ID": "discord-id", "DISCORD_CLIENT_SECRET": "discord-secret"}
        )
    )


@pytest.fixture
def discord_client(discord_app):
    with TestClient(discord_app) as c:
        yield c


@pytest.fixture
def fake_discord(discord_app, monkeypatch):
    """Replace the network side of the Discord handshake."""
    oauth_client = discord_app.state.oauth.create_client("discord")
    profile = dict(DISCORD_PROFILE)

    async def authorize_access_token(request, **kwargs):
        return {"access_token": "discord-token", "token_type": "Bearer"}

    async def get(url, **kwargs):
        return httpx.Response(
            200,
            json=profile,
            request=httpx.Request("GET", "https://discord.com/api/" + url),
        )

    monkeypatch.setattr(oauth_client, "authorize_access_token", authorize_access_token)
    monkeypatch.setattr(oauth_client, "get", get)
    return profile


def test_unconfigured_providers_have_no_routes(client, app):
    assert app.state.oauth_providers == []
    for provider in ("google", "facebook", "discord"):
        assert client.get(f"/auth/{provider}", follow_redirects=False).status_code == 404
        assert client.get(f"/auth/{provider}/callback", follow_redirects=False).status_code == 404


def test_only_configured_provider_is_registered(discord_app, discord_client):
    assert discord_app.state.oauth_providers == ["discord"]
    assert discord_client.get("/auth/google", follow_redirects=False).status_code == 404


def test_login_redirects_to_provider(discord_client):
    resp = discord_client.get("/auth/discord", follow_redirects=False)

    assert resp.status_code == 302
    location = resp.headers["location"]
    assert location.startswith("https://discord.com/oauth2/authorize")
    assert "client_id=discord-id" in location
    assert "connect.sid" in resp.cookies


def test_callback_without_state_redirects_to_fail(discord_client):
    resp = discord_client.get("/auth/discord/callback?code=abc&state=nope", follow_redirects=False)

    assert resp.status_code == 302
    assert resp.headers["location"] == "/?auth=fail"
    assert discord_client.get("/api/me").json() == {"loggedIn": False}


def test_callback_provider_error_redirects_to_fail(discord_client):
    resp = discord_client.get("/auth/discord/callback?error=access_denied", follow_redirects=False)

    assert resp.status_code == 302
    assert resp.headers["location"] == "/?auth=fail"


def test_callback_token_failure_redirects_to_fail(discord_app, discord_client, monkeypatch):
    oauth_client = discord_app.state.oauth.create_client("discord")

    async def authorize_access_token(request, **kwargs):
        raise OAuthError(error="invalid_grant")

    monkeypatch.setattr(oauth_client, "authorize_access_token", authorize_access_token)

    resp = discord_client.get("/auth/discord/callback?code=abc", follow_redirects=False)

    assert resp.headers["location"] == "/?auth=fail"


def test_callback_success_logs_in(discord_client, fake_discord):
    resp = discord_client.get("/auth/discord/callback?code=abc", follow_redirects=False)

    assert resp.status_code == 302
    assert resp.headers["location"] == "/?auth=success"

    me = discord_client.get("/api/me").json()
    assert me["loggedIn"] is True
    assert me["user"] == {
        "provider": "discord",
        "id": "80351110224678912",
        "name": "Nelly",
        "email": "nelly@example.com",
        "avatar": "https://cdn.discordapp.com/avatars/80351110224678912/8342729096ea3675442027381ff50dfe.png",
        "raw": DISCORD_PROFILE,
    }


def test_first_cart_access_creates_record(discord_client, fake_discord, users_file):
    discord_client.get("/auth/discord/callback?code=abc", follow_redirects=False)

    assert discord_client.get("/api/cart").json() == {"ok": True, "cart": []}

    users = read_users(users_file)
    assert users == [
        {
            "id": "80351110224678912",
            "name": "Nelly",
            "email": "nelly@example.com",
            "password": "",
            "cart": [],
        }
    ]


def test_oauth_identity_reuses_local_record_with_same_email(discord_client, fake_discord, users_file):
    register(discord_client, email="nelly@example.com")
    discord_client.post("/api/cart", json={"cart": [{"sku": "A", "qty": 1}]})
    discord_client.post("/api/logout")

    discord_client.get("/auth/discord/callback?code=abc", follow_redirects=False)

    assert discord_client.get("/api/cart").json()["cart"] == [{"sku": "A", "qty": 1}]
    assert len(read_users(users_file)) == 1


def test_oauth_identity_without_email_matches_by_id(discord_client, fake_discord, users_file):
    fake_discord.pop("email")
    fake_discord.pop("global_name")

    discord_client.get("/auth/discord/callback?code=abc", follow_redirects=False)
    discord_client.post("/api/cart", json={"cart": ["x"]})
    assert discord_client.get("/api/cart").json()["cart"] == ["x"]

    users = read_users(users_file)
    assert len(users) == 1
    assert users[0]["email"] == ""
    assert users[0]["name"] == "nelly"
