from datetime import datetime, timezone
import logging
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from taskhub.database import session_scope
from taskhub.models.audit import AuditAction, AuditEntityType, AuditEntry

LOGGER = logging.getLogger(__name__)

_AUDITED_FIELDS = ("id", "email", "role")


def sanitize_user(data: Any) -> dict[str, Any]:
    if not data:
        return {}
    values = {}
    for name in _AUDITED_FIELDS:
        value = data.get(name) if isinstance(data, dict) else getattr(data, name, None)
        if hasattr(value, "value"):
            value = value.value
        values[name] = value if value is not None else ""
    return values


class AuditStore:
    def log_event(
        self,
        actor_id: int | None,
        action: AuditAction,
        entity_type: AuditEntityType,
        entity_id: int | str,
        old_value: Any = None,
        new_value: Any = None,
    ) -> None:
        # An audit write failure must not undo the change it describes.
        try:
            with session_scope() as session:
                session.add(
                    AuditEntry(
                        action=action.value,
                        entity_type=entity_type.value,
                        entity_id=str(entity_id),
                        old_value=sanitize_user(old_value),
                        new_value=sanitize_user(new_value),
                        actor_id=actor_id,
                        created_at=datetime.now(timezone.utc),
                    )
                )
        except SQLAlchemyError:
            LOGGER.exception(
                "Failed to write audit event %s %s %s",
                action.value,
                entity_type.value,
                entity_id,
            )


audit_store = AuditStore()
