"""
Append-only audit log model.
"""
import uuid
from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, String, event

from app.models.base import GUID, Base


class AuditLog(Base):
    """
    Immutable record of an action taken by a user or the system.

    Rows are inserted once and never updated or deleted by this service.
    """

    __tablename__ = "audit_logs"

    id = Column(GUID(), primary_key=True, default=uuid.uuid4, index=True)

    action = Column(
        String(100),
        nullable=False,
        index=True,
        doc="Dotted action tag, e.g. 'application.approved'"
    )

    entity_type = Column(String(100), nullable=False, doc="Kind of entity acted on")

    entity_id = Column(String(64), nullable=True, index=True, doc="Identifier of the entity")

    actor = Column(
        String(64),
        nullable=False,
        doc="Principal id that caused the event, or 'system'"
    )

    details = Column(JSON, nullable=True, doc="Structured event payload")

    ip_address = Column(String(45), nullable=True)

    user_agent = Column(String(500), nullable=True)

    created_at = Column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
        index=True,
        doc="When the event was recorded"
    )

    def __repr__(self) -> str:
        return f"<AuditLog(id={self.id}, action={self.action}, entity_id={self.entity_id})>"


class AuditLogImmutableError(Exception):
    """Raised when code attempts to modify or delete an audit record."""


@event.listens_for(AuditLog, "before_update")
def _prevent_audit_update(mapper, connection, target):
    raise AuditLogImmutableError(f"Audit log {target.id} is append-only")


@event.listens_for(AuditLog, "before_delete")
def _prevent_audit_delete(mapper, connection, target):
    raise AuditLogImmutableError(f"Audit log {target.id} is append-only")
