from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import List, Optional
import logging

from pharmapos.auth import hash_password
from pharmapos.exceptions import (
    PharmaPOSError,
    ValidationError,
    UserNotFoundError,
    EmailConflictError,
)
from pharmapos.models.log import LogAction
from pharmapos.models.user import User, UserStatus
from pharmapos.schemas.user import UserCreate, UserUpdate
from pharmapos.services.log_service import LogService

logger = logging.getLogger(__name__)


class UserService:
    """
    Service class for staff accounts.

    Accounts are soft-deleted: deactivation and reactivation are lifecycle
    transitions on ``User`` and every change is written to the audit log in
    the same transaction.
    """

    def __init__(self, db: Session):
        self.db = db
        self.audit = LogService(db)

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    def get_all(self, status: UserStatus = UserStatus.ACTIVE) -> List[User]:
        return (
            self.db.query(User)
            .filter(User.status == status)
            .order_by(User.name.asc())
            .all()
        )

    def create(self, user_data: UserCreate, actor: User) -> User:
        """
        Create a staff account.

        Raises:
            EmailConflictError: If the email is already registered
        """
        if self.get_by_email(user_data.email):
            raise EmailConflictError("A user with this email already exists.")

        user = User(
            name=user_data.name,
            email=user_data.email,
            password=hash_password(user_data.password),
            role=user_data.role,
            status=UserStatus.ACTIVE,
        )
        self.db.add(user)
        try:
            self.db.flush()
            self.audit.record(
                actor,
                LogAction.USER_CREATED,
                target_id=user.id,
                details={"name": user.name, "email": user.email, "role": user.role.value},
            )
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise EmailConflictError("A user with this email already exists.")

        self.db.refresh(user)
        logger.info(f"User #{user.id} ({user.role.value}) created by user #{actor.id}")
        return user

    def update(self, user_id: int, user_data: UserUpdate, actor: User) -> User:
        """
        Apply a sparse update to a staff account.

        ``isActive`` in the payload is routed through the lifecycle
        transitions, so the self-protection rules hold here too.

        Raises:
            UserNotFoundError: If the user doesn't exist
            ValidationError: If no field was supplied
            EmailConflictError: If the new email belongs to another user
            PermissionDeniedError: If the actor changes their own role or
                deactivates themselves
        """
        user = self._get_or_raise(user_id)
        changes = {
            field: value
            for field, value in user_data.model_dump(exclude_unset=True).items()
            if value is not None
        }
        if not changes:
            raise ValidationError("No fields provided for update.")

        action = LogAction.USER_UPDATED
        details = {}
        try:
            if "name" in changes:
                user.name = changes["name"]
                details["name"] = user.name

            if "email" in changes and changes["email"] != user.email:
                if self.get_by_email(changes["email"]):
                    raise EmailConflictError("This email is already in use.")
                user.email = changes["email"]
                details["email"] = user.email

            if "role" in changes:
                user.change_role(actor, changes["role"])
                details["role"] = user.role.value

            if "password" in changes:
                user.password = hash_password(changes["password"])
                details["password"] = "changed"

            if "is_active" in changes and changes["is_active"] != user.is_active:
                if changes["is_active"]:
                    user.reactivate(actor)
                    action = LogAction.USER_REACTIVATED
                else:
                    user.deactivate(actor)
                    action = LogAction.USER_DEACTIVATED
                details["isActive"] = user.is_active

            self.audit.record(actor, action, target_id=user.id, details=details)
            self.db.commit()

        except PharmaPOSError:
            self.db.rollback()
            raise
        except IntegrityError:
            self.db.rollback()
            raise EmailConflictError("This email is already in use.")

        self.db.refresh(user)
        logger.info(f"User #{user.id} updated by user #{actor.id} ({action})")
        return user

    def deactivate(self, user_id: int, actor: User) -> User:
        """Soft-delete an account."""
        return self._transition(user_id, actor, deactivate=True)

    def reactivate(self, user_id: int, actor: User) -> User:
        """Bring a deactivated account back."""
        return self._transition(user_id, actor, deactivate=False)

    def _transition(self, user_id: int, actor: User, deactivate: bool) -> User:
        user = self._get_or_raise(user_id)
        try:
            if deactivate:
                user.deactivate(actor)
                action = LogAction.USER_DEACTIVATED
            else:
                user.reactivate(actor)
                action = LogAction.USER_REACTIVATED
            self.audit.record(
                actor,
                action,
                target_id=user.id,
                details={"name": user.name, "email": user.email},
            )
            self.db.commit()
        except PharmaPOSError:
            self.db.rollback()
            raise

        self.db.refresh(user)
        logger.info(f"User #{user.id} {action} by user #{actor.id}")
        return user

    def _get_or_raise(self, user_id: int) -> User:
        user = self.get_by_id(user_id)
        if not user:
            raise UserNotFoundError(f"User with ID {user_id} not found")
        return user
