"""
Append-only audit trail.

Route handlers call AuditTrail.record() after the service returned
successfully. The write is scheduled as a background task that runs after the
response went out, in its own session; a failing write is logged and dropped,
never surfaced to the caller.
"""
import logging
from typing import Callable, Optional

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from wellbeing.models.audit import AuditLog

logger = logging.getLogger(__name__)


def write_audit_log(session_factory: Callable[[], Session], **fields) -> None:
    """Persist one audit row. Fire-and-forget: errors end here."""
    db = session_factory()
    try:
        db.add(AuditLog(**fields))
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Failed to create audit log for %s", fields.get("action"))
    finally:
        db.close()


class AuditTrail:
    """Request-scoped audit recorder carrying the caller's ip and user agent."""

    def __init__(
        self,
        background_tasks: BackgroundTasks,
        session_factory: Callable[[], Session],
        method: str,
        path: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ):
        self.background_tasks = background_tasks
        self.session_factory = session_factory
        self.method = method
        self.path = path
        self.ip_address = ip_address
        self.user_agent = user_agent

    def record(
        self,
        action: str,
        entity: str,
        entity_id: Optional[str] = None,
        user_id: Optional[str] = None,
        status_code: int = 200
    ) -> None:
        self.background_tasks.add_task(
            write_audit_log,
            self.session_factory,
            user_id=user_id,
            action=action,
            entity=entity,
            entity_id=entity_id,
            metadata_json={"method": self.method, "path": self.path, "statusCode": status_code},
            ip_address=self.ip_address,
            user_agent=self.user_agent
        )
