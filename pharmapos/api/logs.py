from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from pharmapos.database import get_db
from pharmapos.models.user import User
from pharmapos.policy import Operation, require
from pharmapos.services.log_service import LogService
from pharmapos.schemas.log import LogResponse

router = APIRouter(prefix="/logs", tags=["Audit"])


@router.get(
    "/",
    response_model=list[LogResponse],
    summary="List audit log entries",
    description="All audit log entries, newest first."
)
def list_logs(
    db: Session = Depends(get_db),
    user: User = Depends(require(Operation.LOG_LIST)),
):
    return LogService(db).get_all()
