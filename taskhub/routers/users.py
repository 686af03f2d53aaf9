from fastapi import APIRouter, Depends, HTTPException, Response, status

from taskhub.dependencies import require_access, require_roles
from taskhub.models.user import UserRole
from taskhub.schemas.users import UserCreate, UserResponse, UserUpdate
from taskhub.services.errors import UserConflictError, UserForbiddenError, UserNotFoundError
from taskhub.services.tokens import AuthorizedIdentity
from taskhub.services.users import user_store

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    identity: AuthorizedIdentity = Depends(require_roles(UserRole.ADMIN)),
) -> UserResponse:
    try:
        return user_store.create_user(payload, actor_id=identity.owner.id)
    except UserConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc


@router.get("", response_model=list[UserResponse])
def list_users(identity: AuthorizedIdentity = Depends(require_access)) -> list[UserResponse]:
    return user_store.visible_users(identity.owner)


@router.get("/me", response_model=UserResponse)
def get_me(identity: AuthorizedIdentity = Depends(require_access)) -> UserResponse:
    try:
        return user_store.get_user(identity.owner.id)
    except UserNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: int, identity: AuthorizedIdentity = Depends(require_access)
) -> UserResponse:
    try:
        return user_store.visible_user(identity.owner, user_id)
    except UserNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.patch("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    payload: UserUpdate,
    identity: AuthorizedIdentity = Depends(require_access),
) -> UserResponse:
    try:
        return user_store.update_user(identity.owner, user_id, payload)
    except UserForbiddenError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    except UserNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except UserConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    identity: AuthorizedIdentity = Depends(
        require_roles(UserRole.ADMIN, UserRole.PERFORMER)
    ),
) -> Response:
    if not user_store.can_delete(identity.owner, user_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not allowed to delete this user",
        )
    try:
        user_store.delete_user(user_id, actor_id=identity.owner.id)
    except UserNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
