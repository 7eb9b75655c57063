from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.orm import Session

from pharmapos.database import get_db
from pharmapos.schemas.base import MAX_ID
from pharmapos.models.user import User, UserStatus
from pharmapos.policy import Operation, require
from pharmapos.services.user_service import UserService
from pharmapos.schemas.user import UserCreate, UserUpdate, UserResponse

router = APIRouter(prefix="/users", tags=["Users"])


@router.get(
    "/",
    response_model=list[UserResponse],
    summary="List active users",
)
def list_users(
    db: Session = Depends(get_db),
    user: User = Depends(require(Operation.USER_LIST)),
):
    return UserService(db).get_all(UserStatus.ACTIVE)


@router.get(
    "/inactive",
    response_model=list[UserResponse],
    summary="List inactive users",
    description="Deactivated accounts, candidates for reactivation."
)
def list_inactive_users(
    db: Session = Depends(get_db),
    user: User = Depends(require(Operation.USER_LIST)),
):
    return UserService(db).get_all(UserStatus.INACTIVE)


@router.post(
    "/",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a user",
)
def create_user(
    user_data: UserCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require(Operation.USER_CREATE)),
):
    """
    Create a staff account.

    - **password**: at least 8 characters with upper and lower case letters,
      a number and a special character
    - **role**: ADMIN, STOCKIST or ATTENDANT
    """
    return UserService(db).create(user_data, user)


@router.put(
    "/{user_id}",
    response_model=UserResponse,
    summary="Update a user",
    description="Partial update. Admins cannot change their own role or deactivate themselves."
)
def update_user(
    user_data: UserUpdate,
    user_id: int = Path(..., ge=1, le=MAX_ID),
    db: Session = Depends(get_db),
    user: User = Depends(require(Operation.USER_UPDATE)),
):
    return UserService(db).update(user_id, user_data, user)


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Deactivate a user",
    description="Soft delete: the account is marked inactive and keeps its history."
)
def deactivate_user(
    user_id: int = Path(..., ge=1, le=MAX_ID),
    db: Session = Depends(get_db),
    user: User = Depends(require(Operation.USER_DEACTIVATE)),
):
    UserService(db).deactivate(user_id, user)
    return None


@router.post(
    "/{user_id}/reactivate",
    response_model=UserResponse,
    summary="Reactivate a user",
)
def reactivate_user(
    user_id: int = Path(..., ge=1, le=MAX_ID),
    db: Session = Depends(get_db),
    user: User = Depends(require(Operation.USER_REACTIVATE)),
):
    return UserService(db).reactivate(user_id, user)
