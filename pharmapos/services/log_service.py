from sqlalchemy.orm import Session
from typing import Any, List, Optional

from pharmapos.models.log import Log
from pharmapos.models.user import User


class LogService:
    """Append-only access to the audit log."""

    def __init__(self, db: Session):
        self.db = db

    def record(
        self,
        actor: Optional[User],
        action: str,
        target_id: Optional[int] = None,
        details: Any = None,
    ) -> Log:
        """
        Add a log entry to the current transaction.

        The caller commits, so the entry lands together with the change it
        describes or not at all.
        """
        entry = Log(
            actor_id=actor.id if actor else None,
            actor_name=actor.name if actor else "system",
            action=action,
            target_id=target_id,
            details=details,
        )
        self.db.add(entry)
        return entry

    def get_all(self) -> List[Log]:
        return self.db.query(Log).order_by(Log.created_at.desc(), Log.id.desc()).all()
