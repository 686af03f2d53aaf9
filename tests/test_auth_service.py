import pytest
from sqlalchemy import select

from taskhub.database import session_scope
from taskhub.models.session import SessionEntry
from taskhub.services.auth import (
    AuthService,
    get_access_validator,
    get_auth_service,
    get_refresh_validator,
    get_token_issuer,
)
from taskhub.services.errors import AuthError
from taskhub.services.passwords import HashScheme, PasswordContext
from taskhub.services.sessions import session_store

PASSWORD = "Password123!"


def test_login_opens_session_for_user(make_user):
    user = make_user()
    tokens = get_auth_service().login("a@b.com", PASSWORD)

    assert tokens.access_token.count(".") == 2
    assert tokens.refresh_token.count(".") == 2
    assert tokens.access_token != tokens.refresh_token
    with session_scope() as session:
        owners = session.execute(select(SessionEntry.user_id)).scalars().all()
    assert owners == [user.id]


def test_login_normalizes_email(make_user):
    make_user()
    get_auth_service().login("  A@B.com ", PASSWORD)


def test_login_accepts_argon2_hashes(make_user):
    make_user(scheme=HashScheme.ARGON2)
    get_auth_service().login("a@b.com", PASSWORD)


def test_unknown_email_and_wrong_password_are_indistinguishable(make_user):
    make_user()
    service = get_auth_service()

    with pytest.raises(AuthError) as unknown:
        service.login("nobody@b.com", PASSWORD)
    with pytest.raises(AuthError) as wrong:
        service.login("a@b.com", "Password124!")
    assert str(unknown.value) == str(wrong.value) == "Invalid credentials"


def test_login_logout_scenario(make_user):
    user = make_user()
    service = get_auth_service()
    validator = get_access_validator()

    tokens = service.login("a@b.com", PASSWORD)
    identity = validator.validate(tokens.access_token)
    assert identity.owner.id == user.id

    assert service.logout(identity.session_id) is True
    with pytest.raises(AuthError):
        validator.validate(tokens.access_token)


def test_logout_of_unknown_session_still_succeeds():
    assert get_auth_service().logout("never-issued") is True


def test_refresh_keeps_session(make_user):
    make_user()
    service = get_auth_service()
    tokens = service.login("a@b.com", PASSWORD)
    payload = get_refresh_validator().decode(tokens.refresh_token)

    access_token = service.refresh_access_token(payload)

    assert get_access_validator().decode(access_token) == payload


def test_concurrent_logins_are_independent(make_user):
    make_user()
    service = get_auth_service()
    validator = get_access_validator()
    phone = service.login("a@b.com", PASSWORD)
    laptop = service.login("a@b.com", PASSWORD)

    service.logout(validator.validate(phone.access_token).session_id)

    with pytest.raises(AuthError):
        validator.validate(phone.access_token)
    validator.validate(laptop.access_token)


class _CountingPasswordContext(PasswordContext):
    def __init__(self) -> None:
        super().__init__()
        self.verified: list[str] = []

    def verify(self, password: str, encoded: str) -> bool:
        self.verified.append(encoded)
        return super().verify(password, encoded)


def test_unknown_email_still_runs_password_check(make_user):
    make_user()
    passwords = _CountingPasswordContext()
    service = AuthService(get_token_issuer(), session_store, passwords)

    with pytest.raises(AuthError):
        service.login("nobody@b.com", PASSWORD)
    with pytest.raises(AuthError):
        service.login("a@b.com", "Password124!")

    assert len(passwords.verified) == 2
    assert all(encoded.startswith("$scrypt$") for encoded in passwords.verified)
