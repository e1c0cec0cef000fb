from dataclasses import dataclass
from typing import Optional

from itsdangerous import BadSignature, URLSafeTimedSerializer
from pydantic import ValidationError

from config import get_settings
from schemas import SessionPayload

SESSION_COOKIE = "session"


@dataclass(frozen=True)
class SessionUser:
    id: str
    email: Optional[str] = None


def _serializer() -> URLSafeTimedSerializer:
    settings = get_settings()
    return URLSafeTimedSerializer(settings.session_secret, salt="household-session")


def issue_session_token(user_id: str, email: Optional[str] = None) -> str:
    payload = SessionPayload(u=user_id, e=email)
    return _serializer().dumps(payload.model_dump(exclude_none=True))


def resolve_session_user(token: Optional[str]) -> Optional[SessionUser]:
    settings = get_settings()
    if settings.test_user_id:
        return SessionUser(id=settings.test_user_id)
    if not token:
        return None

    try:
        data = _serializer().loads(
            token, max_age=settings.session_max_age_hours * 3600
        )
    except BadSignature:
        # also covers SignatureExpired
        return None

    try:
        payload = SessionPayload.model_validate(data)
    except ValidationError:
        return None
    return SessionUser(id=payload.u, email=payload.e)


def token_from_headers(cookie: Optional[str], authorization: Optional[str]) -> Optional[str]:
    if authorization:
        scheme, _, value = authorization.partition(" ")
        if scheme.lower() == "bearer" and value.strip():
            return value.strip()
    return cookie or None
