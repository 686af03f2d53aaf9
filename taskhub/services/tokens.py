from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
import logging

import jwt

from taskhub.models.user import UserEntry
from taskhub.services.errors import AuthError
from taskhub.services.sessions import SessionStore

LOGGER = logging.getLogger(__name__)


class TokenKind(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


@dataclass(frozen=True)
class TokenConfig:
    secret: str
    lifetime: timedelta


@dataclass(frozen=True)
class TokenPayload:
    user_id: int
    session_id: str


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class AuthorizedIdentity:
    owner: UserEntry
    session_id: str


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _sign(payload: TokenPayload, kind: TokenKind, config: TokenConfig, algorithm: str) -> str:
    now = _utcnow()
    claims = {
        "userId": payload.user_id,
        "jti": payload.session_id,
        "type": kind.value,
        "iat": int(now.timestamp()),
        "exp": int((now + config.lifetime).timestamp()),
    }
    return jwt.encode(claims, config.secret, algorithm=algorithm)


class TokenIssuer:
    def __init__(
        self,
        access: TokenConfig,
        refresh: TokenConfig,
        sessions: SessionStore,
        algorithm: str = "HS256",
    ) -> None:
        self._access = access
        self._refresh = refresh
        self._sessions = sessions
        self._algorithm = algorithm

    def generate_tokens(self, user_id: int) -> TokenPair:
        session_id = self._sessions.create(user_id, self._refresh.lifetime)
        payload = TokenPayload(user_id=user_id, session_id=session_id)
        return TokenPair(
            access_token=_sign(payload, TokenKind.ACCESS, self._access, self._algorithm),
            refresh_token=_sign(payload, TokenKind.REFRESH, self._refresh, self._algorithm),
        )

    def refresh_access_token(self, payload: TokenPayload) -> str:
        # Reuses the existing session; refresh tokens are not rotated.
        return _sign(payload, TokenKind.ACCESS, self._access, self._algorithm)


class TokenValidator:
    """Checks one class of token: signature, expiry, then the session row."""

    def __init__(
        self,
        kind: TokenKind,
        config: TokenConfig,
        sessions: SessionStore,
        algorithm: str = "HS256",
    ) -> None:
        self.kind = kind
        self._config = config
        self._sessions = sessions
        self._algorithm = algorithm

    def decode(self, token: str) -> TokenPayload:
        if not token:
            raise AuthError("Invalid token")
        try:
            claims = jwt.decode(
                token,
                self._config.secret,
                algorithms=[self._algorithm],
                options={"require": ["exp", "jti"]},
            )
        except jwt.ExpiredSignatureError as exc:
            LOGGER.info("Rejected expired %s token", self.kind.value)
            raise AuthError("Invalid token") from exc
        except jwt.InvalidTokenError as exc:
            LOGGER.info("Rejected %s token: %s", self.kind.value, exc)
            raise AuthError("Invalid token") from exc
        if claims.get("type") != self.kind.value:
            LOGGER.info("Rejected %s token with type %r", self.kind.value, claims.get("type"))
            raise AuthError("Invalid token")
        user_id = claims.get("userId")
        session_id = claims.get("jti")
        if isinstance(user_id, bool) or not isinstance(user_id, int):
            raise AuthError("Invalid token")
        if not isinstance(session_id, str) or not session_id:
            raise AuthError("Invalid token")
        return TokenPayload(user_id=user_id, session_id=session_id)

    def validate(self, token: str) -> AuthorizedIdentity:
        payload = self.decode(token)
        owner = self._sessions.verify(payload.user_id, payload.session_id)
        return AuthorizedIdentity(owner=owner, session_id=payload.session_id)
