from datetime import datetime, timezone
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from taskhub.database import session_scope
from taskhub.models.audit import AuditAction, AuditEntityType
from taskhub.models.user import UserEntry, UserRole
from taskhub.schemas.users import UserCreate, UserResponse, UserUpdate
from taskhub.services.audit import AuditStore, audit_store
from taskhub.services.errors import UserConflictError, UserForbiddenError, UserNotFoundError
from taskhub.services.passwords import PasswordContext, password_context
from taskhub.services.sessions import SessionStore, session_store

LOGGER = logging.getLogger(__name__)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


class UserStore:
    def __init__(
        self, passwords: PasswordContext, audit: AuditStore, sessions: SessionStore
    ) -> None:
        self._passwords = passwords
        self._audit = audit
        self._sessions = sessions

    def create_user(self, payload: UserCreate, actor_id: int | None = None) -> UserResponse:
        now = datetime.now(timezone.utc)
        email = _normalize_email(payload.email)
        password_hash = self._passwords.hash(payload.password)
        try:
            with session_scope() as session:
                existing = session.execute(
                    select(UserEntry).where(UserEntry.email == email)
                ).scalar_one_or_none()
                if existing:
                    raise UserConflictError("Email already in use")
                entry = UserEntry(
                    email=email,
                    password_hash=password_hash,
                    role=payload.role.value,
                    created_at=now,
                    updated_at=now,
                )
                session.add(entry)
                session.flush()
                response = self._to_response(entry)
        except IntegrityError as exc:
            # Lost a race with a concurrent insert of the same email.
            raise UserConflictError("Email already in use") from exc
        LOGGER.info("Created user %s with role %s", response.id, response.role.value)
        self._audit.log_event(
            actor_id, AuditAction.CREATE, AuditEntityType.USER, response.id, None, response
        )
        return response

    def get_user(self, user_id: int) -> UserResponse:
        with session_scope() as session:
            entry = session.get(UserEntry, user_id)
            if entry is None:
                raise UserNotFoundError(f"User with id {user_id} not found")
            return self._to_response(entry)

    def list_users(self) -> list[UserResponse]:
        with session_scope() as session:
            entries = session.execute(select(UserEntry).order_by(UserEntry.id)).scalars().all()
            return [self._to_response(entry) for entry in entries]

    def visible_users(self, viewer: UserEntry) -> list[UserResponse]:
        role = UserRole(viewer.role)
        if role is UserRole.ADMIN:
            return self._users_for_admin()
        if role is UserRole.MANAGER:
            return self._users_for_manager()
        if role is UserRole.PERFORMER:
            return self._users_for_performer(viewer)
        raise ValueError(f"Unhandled role: {role}")

    def visible_user(self, viewer: UserEntry, user_id: int) -> UserResponse:
        role = UserRole(viewer.role)
        if role is UserRole.PERFORMER:
            return self.get_user(viewer.id)
        if role in (UserRole.ADMIN, UserRole.MANAGER):
            return self.get_user(user_id)
        raise ValueError(f"Unhandled role: {role}")

    def can_delete(self, actor: UserEntry, user_id: int) -> bool:
        role = UserRole(actor.role)
        if role is UserRole.ADMIN:
            return True
        if role is UserRole.PERFORMER:
            return actor.id == user_id
        if role is UserRole.MANAGER:
            return False
        raise ValueError(f"Unhandled role: {role}")

    def update_user(self, actor: UserEntry, user_id: int, payload: UserUpdate) -> UserResponse:
        """Apply the fields set in ``payload`` to ``user_id`` on behalf of ``actor``.

        Admins may change any account, including its role. Managers and
        performers may only change their own email or password.
        """
        self._check_update_allowed(actor, user_id, payload)
        now = datetime.now(timezone.utc)
        password_hash = self._passwords.hash(payload.password) if payload.password else None
        try:
            with session_scope() as session:
                entry = session.get(UserEntry, user_id)
                if entry is None:
                    raise UserNotFoundError(f"User with id {user_id} not found")
                before = self._to_response(entry)

                if payload.email and payload.email != entry.email:
                    existing = session.execute(
                        select(UserEntry).where(UserEntry.email == payload.email)
                    ).scalar_one_or_none()
                    if existing is not None:
                        raise UserConflictError("Email already in use")
                    entry.email = payload.email
                if password_hash is not None:
                    entry.password_hash = password_hash
                if payload.role is not None:
                    entry.role = payload.role.value
                entry.updated_at = now
                session.flush()
                after = self._to_response(entry)
        except IntegrityError as exc:
            raise UserConflictError("Email already in use") from exc
        LOGGER.info("Updated user %s", user_id)
        self._audit.log_event(
            actor.id, AuditAction.UPDATE, AuditEntityType.USER, user_id, before, after
        )
        return after

    def _check_update_allowed(self, actor: UserEntry, user_id: int, payload: UserUpdate) -> None:
        role = UserRole(actor.role)
        if role is UserRole.ADMIN:
            return
        if role in (UserRole.MANAGER, UserRole.PERFORMER):
            if actor.id != user_id:
                raise UserForbiddenError("Not allowed to update this user")
            if payload.role is not None:
                raise UserForbiddenError("Only an admin can change roles")
            return
        raise ValueError(f"Unhandled role: {role}")

    def delete_user(self, user_id: int, actor_id: int | None = None) -> None:
        with session_scope() as session:
            entry = session.get(UserEntry, user_id)
            if entry is None:
                raise UserNotFoundError(f"User with id {user_id} not found")
            removed = self._to_response(entry)
            # Sessions go first so every outstanding token is revoked with the user.
            self._sessions.delete_for_user(user_id, session)
            session.delete(entry)
        LOGGER.info("Deleted user %s", user_id)
        self._audit.log_event(
            actor_id, AuditAction.DELETE, AuditEntityType.USER, user_id, removed, None
        )

    def ensure_admin(self, email: str, password: str) -> bool:
        email = _normalize_email(email)
        with session_scope() as session:
            existing = session.execute(
                select(UserEntry).where(UserEntry.email == email)
            ).scalar_one_or_none()
        if existing is not None:
            return False
        self.create_user(UserCreate(email=email, password=password, role=UserRole.ADMIN))
        return True

    def _users_for_admin(self) -> list[UserResponse]:
        return self.list_users()

    def _users_for_manager(self) -> list[UserResponse]:
        return self.list_users()

    def _users_for_performer(self, viewer: UserEntry) -> list[UserResponse]:
        return [self.get_user(viewer.id)]

    def _to_response(self, entry: UserEntry) -> UserResponse:
        return UserResponse(
            id=entry.id,
            email=entry.email,
            role=UserRole(entry.role),
            created_at=entry.created_at,
            updated_at=entry.updated_at,
        )


user_store = UserStore(password_context, audit_store, session_store)
