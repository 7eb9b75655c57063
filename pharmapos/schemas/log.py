from datetime import datetime
from typing import Any, Optional

from pharmapos.schemas.base import CamelModel


class LogResponse(CamelModel):
    """Schema for an audit log entry."""
    id: int
    actor_id: Optional[int] = None
    actor_name: str
    action: str
    target_id: Optional[int] = None
    details: Optional[Any] = None
    created_at: Optional[datetime] = None
