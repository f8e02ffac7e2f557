"""Bearer token verification tests."""

from datetime import timedelta

import pytest
from jose import jwt
from revvdoc.config import settings
from revvdoc.errors import UnauthenticatedError
from revvdoc.services.auth import get_current_user_id, verify_token

from conftest import TECH_ID, make_token


def test_verify_token_returns_subject():
    assert verify_token(make_token(TECH_ID)) == TECH_ID


def test_wrong_signature_rejected():
    token = jwt.encode({"sub": TECH_ID}, "some-other-secret", algorithm="HS256")

    with pytest.raises(UnauthenticatedError, match="Invalid token"):
        verify_token(token)


def test_expired_token_rejected():
    with pytest.raises(UnauthenticatedError):
        verify_token(make_token(TECH_ID, expires_in=timedelta(seconds=-1)))


def test_token_without_subject_rejected():
    token = jwt.encode({"role": "technician"}, settings.AUTH_JWT_SECRET, algorithm="HS256")

    with pytest.raises(UnauthenticatedError):
        verify_token(token)


def test_audience_enforced_when_configured(monkeypatch):
    monkeypatch.setattr(settings, "AUTH_JWT_AUDIENCE", "revvdoc")

    wrong = jwt.encode({"sub": TECH_ID, "aud": "someone-else"}, settings.AUTH_JWT_SECRET, algorithm="HS256")
    with pytest.raises(UnauthenticatedError):
        verify_token(wrong)

    token = jwt.encode({"sub": TECH_ID, "aud": "revvdoc"}, settings.AUTH_JWT_SECRET, algorithm="HS256")
    assert verify_token(token) == TECH_ID


@pytest.mark.asyncio
@pytest.mark.parametrize("header", [None, "", "Token abc", "Bearer "])
async def test_missing_bearer_header(header):
    with pytest.raises(UnauthenticatedError, match="Missing Authorization header"):
        await get_current_user_id(header)
