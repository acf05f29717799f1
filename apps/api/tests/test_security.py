"""Bearer-token identity and JWT secret rotation."""

import jwt
import pytest

from app.core.config import settings
from app.core.security import create_session_token, decode_session_token

from tests.helpers import make_pubkey


def test_token_round_trip_subject():
    pubkey = make_pubkey()
    payload = decode_session_token(create_session_token(pubkey))
    assert payload["sub"] == pubkey


def test_expired_token_raises():
    token = create_session_token(make_pubkey(), expires_hours=-1)
    with pytest.raises(jwt.ExpiredSignatureError):
        decode_session_token(token)


def test_previous_secret_accepted_during_rotation(monkeypatch):
    pubkey = make_pubkey()
    old = jwt.encode({"sub": pubkey}, "old-secret-value-for-rotation-tests!", algorithm="HS256")
    monkeypatch.setattr(settings, "JWT_SECRET_PREVIOUS", "old-secret-value-for-rotation-tests!")

    assert decode_session_token(old)["sub"] == pubkey


def test_foreign_secret_rejected():
    token = jwt.encode({"sub": make_pubkey()}, "someone-elses-secret-0123456789abc", algorithm="HS256")
    with pytest.raises(jwt.InvalidTokenError):
        decode_session_token(token)


@pytest.mark.asyncio
async def test_bearer_token_identifies_caller(client):
    pubkey = make_pubkey()
    token = create_session_token(pubkey)

    response = await client.get("/api/users/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    assert response.json()["data"]["pubkey"] == pubkey


@pytest.mark.asyncio
async def test_expired_bearer_token_is_401(client):
    token = create_session_token(make_pubkey(), expires_hours=-1)

    response = await client.get("/api/users/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "SESSION_EXPIRED"


@pytest.mark.asyncio
async def test_first_request_provisions_user(client, db):
    from app.services import user_service

    pubkey = make_pubkey()
    response = await client.get("/api/users/me", headers={"x-user-pubkey": pubkey})

    assert response.status_code == 200
    assert user_service.get_user(db, pubkey) is not None
    assert response.json()["data"]["username"] == f"user_{pubkey[:8]}"
