from functools import lru_cache
import logging

from sqlalchemy import select

from taskhub.config import settings
from taskhub.database import session_scope
from taskhub.models.user import UserEntry
from taskhub.services.errors import AuthError
from taskhub.services.passwords import PasswordContext, password_context
from taskhub.services.sessions import SessionStore, session_store
from taskhub.services.tokens import (
    TokenConfig,
    TokenIssuer,
    TokenKind,
    TokenPair,
    TokenPayload,
    TokenValidator,
)

LOGGER = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"
_DUMMY_PASSWORD = "taskhub-unknown-account"


class AuthService:
    def __init__(
        self,
        issuer: TokenIssuer,
        sessions: SessionStore,
        passwords: PasswordContext,
    ) -> None:
        self._issuer = issuer
        self._sessions = sessions
        self._passwords = passwords
        # Checked against when the email is unknown so both failures pay for the KDF.
        self._dummy_hash = passwords.hash(_DUMMY_PASSWORD)

    def login(self, email: str, password: str) -> TokenPair:
        """Check the credentials and open a new session.

        Unknown email and wrong password raise the same ``AuthError`` so the
        response does not reveal which accounts exist.
        """
        normalized = email.strip().lower()
        with session_scope() as session:
            user = session.execute(
                select(UserEntry).where(UserEntry.email == normalized)
            ).scalar_one_or_none()
        if user is None:
            self._passwords.verify(password, self._dummy_hash)
            LOGGER.warning("Login failed: unknown account")
            raise AuthError(INVALID_CREDENTIALS)
        if not self._passwords.verify(password, user.password_hash):
            LOGGER.warning("Login failed: bad password for user %s", user.id)
            raise AuthError(INVALID_CREDENTIALS)

        tokens = self._issuer.generate_tokens(user.id)
        LOGGER.info("Login succeeded for user %s", user.id)
        return tokens

    def logout(self, session_id: str) -> bool:
        self._sessions.delete(session_id)
        LOGGER.info("Logged out session %s", session_id)
        return True

    def refresh_access_token(self, payload: TokenPayload) -> str:
        access_token = self._issuer.refresh_access_token(payload)
        LOGGER.info(
            "Refreshed access token for user %s on session %s",
            payload.user_id,
            payload.session_id,
        )
        return access_token


def _token_config(kind: TokenKind) -> TokenConfig:
    settings.require_auth()
    if kind is TokenKind.ACCESS:
        return TokenConfig(settings.jwt_access_secret, settings.access_token_lifetime)
    if kind is TokenKind.REFRESH:
        return TokenConfig(settings.jwt_refresh_secret, settings.refresh_token_lifetime)
    raise ValueError(f"Unknown token kind: {kind}")


@lru_cache(maxsize=1)
def get_token_issuer() -> TokenIssuer:
    return TokenIssuer(
        access=_token_config(TokenKind.ACCESS),
        refresh=_token_config(TokenKind.REFRESH),
        sessions=session_store,
        algorithm=settings.jwt_algorithm,
    )


@lru_cache(maxsize=1)
def get_access_validator() -> TokenValidator:
    return TokenValidator(
        TokenKind.ACCESS,
        _token_config(TokenKind.ACCESS),
        session_store,
        algorithm=settings.jwt_algorithm,
    )


@lru_cache(maxsize=1)
def get_refresh_validator() -> TokenValidator:
    return TokenValidator(
        TokenKind.REFRESH,
        _token_config(TokenKind.REFRESH),
        session_store,
        algorithm=settings.jwt_algorithm,
    )


@lru_cache(maxsize=1)
def get_auth_service() -> AuthService:
    return AuthService(get_token_issuer(), session_store, password_context)
