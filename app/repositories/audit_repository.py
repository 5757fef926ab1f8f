"""
Audit log repository. Insert and read only.
"""

from typing import List

from sqlalchemy.orm import Session

from app.models.audit import AuditLog
from app.repositories.base import BaseRepository
from app.schemas.audit import AuditEventCreate


class AuditRepository(BaseRepository[AuditLog]):
    """Repository for append-only audit events."""

    def __init__(self, db: Session):
        """Initialize audit repository."""
        super().__init__(AuditLog, db)

    def append(self, event: AuditEventCreate) -> AuditLog:
        """
        Append an audit event.

        Args:
            event: Event to persist

        Returns:
            Persisted audit log row
        """
        return self.create_from_dict(event.model_dump())

    def list_for_entity(self, entity_type: str, entity_id: str) -> List[AuditLog]:
        """
        Get the audit trail for one entity in chronological order.

        Args:
            entity_type: Entity kind
            entity_id: Entity identifier

        Returns:
            List of audit events
        """
        return (
            self.db.query(AuditLog)
            .filter(
                AuditLog.entity_type == entity_type,
                AuditLog.entity_id == str(entity_id),
            )
            .order_by(AuditLog.created_at)
            .all()
        )
