from typing import Callable

from fastapi import Depends, Header, HTTPException, status

from taskhub.models.user import UserRole
from taskhub.services.auth import get_access_validator, get_refresh_validator
from taskhub.services.errors import AuthError
from taskhub.services.tokens import AuthorizedIdentity, TokenValidator


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _bearer_token(authorization: str | None) -> str:
    if not authorization:
        raise _unauthorized("Missing Authorization header")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise _unauthorized("Invalid Authorization header")
    return token.strip()


def _authorize(validator: TokenValidator, authorization: str | None) -> AuthorizedIdentity:
    token = _bearer_token(authorization)
    try:
        return validator.validate(token)
    except AuthError as exc:
        raise _unauthorized(str(exc)) from exc


def require_access(
    authorization: str | None = Header(default=None),
    validator: TokenValidator = Depends(get_access_validator),
) -> AuthorizedIdentity:
    return _authorize(validator, authorization)


def require_refresh(
    authorization: str | None = Header(default=None),
    validator: TokenValidator = Depends(get_refresh_validator),
) -> AuthorizedIdentity:
    return _authorize(validator, authorization)


def require_roles(*roles: UserRole) -> Callable[..., AuthorizedIdentity]:
    allowed = frozenset(roles)

    def dependency(identity: AuthorizedIdentity = Depends(require_access)) -> AuthorizedIdentity:
        if UserRole(identity.owner.role) not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient role",
            )
        return identity

    return dependency
