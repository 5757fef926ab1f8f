"""
Audit event schemas.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class AuditEventCreate(BaseModel):
    """Audit event to be appended."""

    action: str = Field(..., min_length=1, max_length=100, description="Action tag")
    entity_type: str = Field(..., min_length=1, max_length=100, description="Entity kind")
    entity_id: Optional[str] = Field(None, description="Entity identifier")
    actor: str = Field(..., description="Principal ID or 'system'")
    details: Dict[str, Any] = Field(default_factory=dict, description="Structured payload")
    ip_address: Optional[str] = Field(None, max_length=45)
    user_agent: Optional[str] = Field(None, max_length=500)


class AuditEventResponse(BaseModel):
    """Persisted audit event."""

    id: UUID
    action: str
    entity_type: str
    entity_id: Optional[str] = None
    actor: str
    details: Optional[Dict[str, Any]] = None
    created_at: datetime

    class Config:
        from_attributes = True


class AuditTrailResponse(BaseModel):
    """Audit trail for a single entity."""

    entity_id: str
    events: List[AuditEventResponse]
    total_entries: int
