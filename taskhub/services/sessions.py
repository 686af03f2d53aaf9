from datetime import datetime, timedelta, timezone
import logging
import secrets

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from taskhub.database import session_scope
from taskhub.models.session import SessionEntry
from taskhub.models.user import UserEntry
from taskhub.services.errors import AuthError

LOGGER = logging.getLogger(__name__)


class SessionStore:
    """Server-side record of every issued login.

    A token is only honoured while the session it names exists, belongs to
    the token's user and has not expired. Deleting the row revokes it.
    """

    def create(self, user_id: int, lifetime: timedelta) -> str:
        now = datetime.now(timezone.utc)
        session_id = secrets.token_urlsafe(32)
        expires_at = now + lifetime
        with session_scope() as session:
            session.add(
                SessionEntry(
                    id=session_id,
                    user_id=user_id,
                    created_at=now,
                    expires_at=expires_at,
                )
            )
        LOGGER.info(
            "Created session %s for user %s expiring at %s",
            session_id,
            user_id,
            expires_at.isoformat(),
        )
        return session_id

    def verify(self, user_id: int, session_id: str) -> UserEntry:
        now = datetime.now(timezone.utc)
        with session_scope() as session:
            owner = session.execute(
                select(UserEntry)
                .join(SessionEntry, SessionEntry.user_id == UserEntry.id)
                .where(
                    SessionEntry.id == session_id,
                    SessionEntry.user_id == user_id,
                    SessionEntry.expires_at > now,
                )
            ).scalar_one_or_none()
        if owner is None:
            LOGGER.warning("Invalid or expired session presented for user %s", user_id)
            raise AuthError("Invalid token")
        return owner

    def delete(self, session_id: str) -> bool:
        with session_scope() as session:
            session.execute(delete(SessionEntry).where(SessionEntry.id == session_id))
        LOGGER.info("Deleted session %s", session_id)
        return True

    def delete_for_user(self, user_id: int, session: Session | None = None) -> int:
        """Revoke every session of ``user_id``.

        When ``session`` is given the delete joins the caller's transaction and
        commits or rolls back with it.
        """
        statement = delete(SessionEntry).where(SessionEntry.user_id == user_id)
        if session is None:
            with session_scope() as own_session:
                result = own_session.execute(statement)
        else:
            result = session.execute(statement)
        LOGGER.info("Deleted %s sessions for user %s", result.rowcount, user_id)
        return result.rowcount

    def purge_expired(self, now: datetime | None = None) -> int:
        now = now or datetime.now(timezone.utc)
        with session_scope() as session:
            result = session.execute(
                delete(SessionEntry).where(SessionEntry.expires_at <= now)
            )
        LOGGER.info("Purged %s expired sessions", result.rowcount)
        return result.rowcount


session_store = SessionStore()
