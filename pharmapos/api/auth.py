import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from pharmapos.auth import authenticate, create_access_token, get_current_user
from pharmapos.database import get_db
from pharmapos.models.user import User
from pharmapos.schemas.user import LoginRequest, TokenResponse, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Sign in",
    description="Exchange email and password for a bearer token. Inactive accounts are refused."
)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = authenticate(db, payload.email, payload.password)
    logger.info(f"User #{user.id} signed in")
    return TokenResponse(
        access_token=create_access_token(user),
        user=UserResponse.model_validate(user),
    )


@router.get("/me", response_model=UserResponse, summary="Current user")
def me(user: User = Depends(get_current_user)):
    return user
