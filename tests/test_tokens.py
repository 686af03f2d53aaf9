from datetime import timedelta

import jwt
import pytest

from taskhub.services.errors import AuthError
from taskhub.services.sessions import SessionStore
from taskhub.services.tokens import (
    TokenConfig,
    TokenIssuer,
    TokenKind,
    TokenPayload,
    TokenValidator,
)

ACCESS = TokenConfig("access-secret-0123456789abcdef0123456789", timedelta(minutes=15))
REFRESH = TokenConfig("refresh-secret-0123456789abcdef0123456789", timedelta(days=7))

sessions = SessionStore()
issuer = TokenIssuer(ACCESS, REFRESH, sessions)
access_validator = TokenValidator(TokenKind.ACCESS, ACCESS, sessions)
refresh_validator = TokenValidator(TokenKind.REFRESH, REFRESH, sessions)


def test_both_tokens_share_one_session(make_user):
    user = make_user()
    tokens = issuer.generate_tokens(user.id)

    assert tokens.access_token != tokens.refresh_token
    access = access_validator.decode(tokens.access_token)
    refresh = refresh_validator.decode(tokens.refresh_token)
    assert access == refresh == TokenPayload(user_id=user.id, session_id=access.session_id)


def test_claims_carry_user_and_session(make_user):
    user = make_user()
    tokens = issuer.generate_tokens(user.id)

    claims = jwt.decode(tokens.access_token, ACCESS.secret, algorithms=["HS256"])
    assert claims["userId"] == user.id
    assert claims["type"] == "access"
    assert claims["exp"] - claims["iat"] == 15 * 60


def test_validate_round_trip(make_user):
    user = make_user()
    tokens = issuer.generate_tokens(user.id)

    identity = access_validator.validate(tokens.access_token)
    assert identity.owner.id == user.id
    assert identity.session_id == access_validator.decode(tokens.access_token).session_id


def test_secrets_are_isolated(make_user):
    user = make_user()
    tokens = issuer.generate_tokens(user.id)

    with pytest.raises(AuthError):
        refresh_validator.validate(tokens.access_token)
    with pytest.raises(AuthError):
        access_validator.validate(tokens.refresh_token)


def test_type_claim_is_checked_even_with_shared_secret(make_user):
    shared = TokenConfig("shared-secret-0123456789abcdef0123456789", timedelta(minutes=15))
    same_secret_issuer = TokenIssuer(shared, shared, sessions)
    validator = TokenValidator(TokenKind.ACCESS, shared, sessions)
    tokens = same_secret_issuer.generate_tokens(make_user().id)

    validator.validate(tokens.access_token)
    with pytest.raises(AuthError):
        validator.validate(tokens.refresh_token)


def test_expired_token_is_rejected(make_user):
    stale = TokenConfig(ACCESS.secret, timedelta(seconds=-30))
    stale_issuer = TokenIssuer(stale, REFRESH, sessions)
    tokens = stale_issuer.generate_tokens(make_user().id)

    with pytest.raises(AuthError, match="Invalid token"):
        access_validator.validate(tokens.access_token)


@pytest.mark.parametrize("token", ["", "not-a-jwt", "a.b.c"])
def test_garbage_is_rejected(token):
    with pytest.raises(AuthError):
        access_validator.validate(token)


def test_tampered_token_is_rejected(make_user):
    tokens = issuer.generate_tokens(make_user().id)
    forged = jwt.encode(
        jwt.decode(tokens.access_token, options={"verify_signature": False}),
        "guessed-secret-0123456789abcdef0123456789",
        algorithm="HS256",
    )
    with pytest.raises(AuthError):
        access_validator.validate(forged)


def test_token_for_revoked_session_is_rejected(make_user):
    user = make_user()
    tokens = issuer.generate_tokens(user.id)
    payload = access_validator.decode(tokens.access_token)

    sessions.delete(payload.session_id)

    with pytest.raises(AuthError):
        access_validator.validate(tokens.access_token)
    with pytest.raises(AuthError):
        refresh_validator.validate(tokens.refresh_token)


def test_refresh_reuses_session(make_user):
    user = make_user()
    tokens = issuer.generate_tokens(user.id)
    payload = refresh_validator.decode(tokens.refresh_token)

    new_access = issuer.refresh_access_token(payload)

    assert access_validator.decode(new_access).session_id == payload.session_id
    assert access_validator.validate(new_access).owner.id == user.id
