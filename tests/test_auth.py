import pytest

from auth import issue_session_token, resolve_session_user, token_from_headers
from config import get_settings


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    monkeypatch.delenv("HOUSEHOLD_TEST_USER_ID", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_session_token_round_trip():
    token = issue_session_token("user-1", "a@example.com")
    user = resolve_session_user(token)
    assert user is not None
    assert user.id == "user-1"
    assert user.email == "a@example.com"


def test_tampered_token_is_rejected():
    token = issue_session_token("user-1")
    assert resolve_session_user(token + "x") is None
    assert resolve_session_user("") is None
    assert resolve_session_user(None) is None


def test_token_signed_with_other_secret_is_rejected(monkeypatch):
    token = issue_session_token("user-1")
    monkeypatch.setenv("HOUSEHOLD_SESSION_SECRET", "another-secret")
    get_settings.cache_clear()
    assert resolve_session_user(token) is None


def test_test_user_bypass(monkeypatch):
    monkeypatch.setenv("HOUSEHOLD_TEST_USER_ID", "bypass-user")
    get_settings.cache_clear()
    user = resolve_session_user(None)
    assert user is not None
    assert user.id == "bypass-user"


def test_bearer_header_wins_over_cookie():
    assert token_from_headers("cookie-token", "Bearer header-token") == "header-token"
    assert token_from_headers("cookie-token", "Basic abc") == "cookie-token"
    assert token_from_headers(None, None) is None
