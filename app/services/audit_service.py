"""
Best-effort audit recorder.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.models.audit import AuditLog
from app.repositories.audit_repository import AuditRepository
from app.schemas.audit import AuditEventCreate
from app.utils.logging import get_logger, log_business_event

logger = get_logger(__name__)

SYSTEM_ACTOR = "system"


class AuditService:
    """Appends audit events without ever failing the caller."""

    def __init__(self, db: Session):
        """
        Initialize audit service.

        Args:
            db: Database session
        """
        self.db = db
        self.audit_repository = AuditRepository(db)

    def record(
        self,
        action: str,
        entity_type: str,
        entity_id: Optional[str],
        actor: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Optional[AuditLog]:
        """
        Record an audit event.

        Failures are logged and rolled back, never raised.

        Args:
            action: Dotted action tag
            entity_type: Entity kind
            entity_id: Entity identifier
            actor: Principal id, defaults to the system actor
            details: Structured payload
            ip_address: Caller IP address
            user_agent: Caller user agent

        Returns:
            Persisted audit event, or None if recording failed
        """
        actor = actor or SYSTEM_ACTOR
        entity_id = str(entity_id) if entity_id is not None else None

        log_business_event(
            action,
            entity_type,
            entity_id,
            user_id=actor,
            details=details,
        )

        try:
            event = AuditEventCreate(
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                actor=actor,
                details=details or {},
                ip_address=ip_address,
                user_agent=user_agent[:500] if user_agent else None,
            )
            return self.audit_repository.append(event)
        except Exception as e:
            logger.error(
                "Failed to record audit event",
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                error=str(e),
            )
            try:
                self.db.rollback()
            except Exception as rollback_error:
                logger.error("Audit rollback failed", error=str(rollback_error))
            return None

    def get_trail(self, entity_type: str, entity_id: str) -> List[AuditLog]:
        """Get the audit trail for an entity, oldest first."""
        return self.audit_repository.list_for_entity(entity_type, entity_id)
