from fastapi import APIRouter, Depends, HTTPException, status

from taskhub.dependencies import require_access, require_refresh, require_roles
from taskhub.models.user import UserRole
from taskhub.schemas.auth import (
    AccessTokenResponse,
    LoginRequest,
    PurgeResponse,
    TokenPairResponse,
)
from taskhub.services.auth import AuthService, get_auth_service
from taskhub.services.errors import AuthError
from taskhub.services.sessions import session_store
from taskhub.services.tokens import AuthorizedIdentity, TokenPayload

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenPairResponse)
def login(
    payload: LoginRequest, auth_service: AuthService = Depends(get_auth_service)
) -> TokenPairResponse:
    try:
        tokens = auth_service.login(payload.email, payload.password)
    except AuthError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc
    return TokenPairResponse(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
    )


@router.post("/logout", response_model=bool)
def logout(
    identity: AuthorizedIdentity = Depends(require_access),
    auth_service: AuthService = Depends(get_auth_service),
) -> bool:
    return auth_service.logout(identity.session_id)


@router.post("/refresh", response_model=AccessTokenResponse)
def refresh_access_token(
    identity: AuthorizedIdentity = Depends(require_refresh),
    auth_service: AuthService = Depends(get_auth_service),
) -> AccessTokenResponse:
    access_token = auth_service.refresh_access_token(
        TokenPayload(user_id=identity.owner.id, session_id=identity.session_id)
    )
    return AccessTokenResponse(access_token=access_token)


@router.delete("/sessions/expired", response_model=PurgeResponse)
def purge_expired_sessions(
    _: AuthorizedIdentity = Depends(require_roles(UserRole.ADMIN)),
) -> PurgeResponse:
    return PurgeResponse(deleted=session_store.purge_expired())
