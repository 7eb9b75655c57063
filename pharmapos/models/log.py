from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func

from pharmapos.database import Base


class LogAction:
    """Action tags written to the audit log."""
    USER_CREATED = "USER_CREATED"
    USER_UPDATED = "USER_UPDATED"
    USER_DEACTIVATED = "USER_DEACTIVATED"
    USER_REACTIVATED = "USER_REACTIVATED"
    LOW_STOCK_ALERT = "LOW_STOCK_ALERT"


class Log(Base):
    """Append-only audit trail entry."""
    __tablename__ = "logs"

    id = Column(Integer, primary_key=True, index=True)
    actor_id = Column(Integer, nullable=True, index=True)
    actor_name = Column(String(100), nullable=False)
    action = Column(String(50), nullable=False, index=True)
    target_id = Column(Integer, nullable=True)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    def __repr__(self):
        return f"<Log(id={self.id}, action='{self.action}', target_id={self.target_id})>"
