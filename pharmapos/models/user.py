from sqlalchemy import Column, Integer, String, DateTime, Enum
from sqlalchemy.sql import func
import enum

from pharmapos.database import Base
from pharmapos.exceptions import PermissionDeniedError, ValidationError


class UserRole(str, enum.Enum):
    """Enum for user roles."""
    ADMIN = "ADMIN"
    STOCKIST = "STOCKIST"
    ATTENDANT = "ATTENDANT"


class UserStatus(str, enum.Enum):
    """Lifecycle state of an account. Inactive accounts keep their history."""
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class User(Base):
    """
    User model for staff accounts.

    Accounts are never removed: "deleting" a user moves it to
    ``UserStatus.INACTIVE`` so sales and stock movements keep their actor.
    Lifecycle and role transitions go through the methods below, which
    enforce the self-protection rules in one place.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password = Column(String(255), nullable=False)
    role = Column(Enum(UserRole), nullable=False, default=UserRole.ATTENDANT)
    status = Column(Enum(UserStatus), nullable=False, default=UserStatus.ACTIVE)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    def deactivate(self, actor: "User") -> None:
        if actor.id == self.id:
            raise PermissionDeniedError("You cannot deactivate your own account.")
        if not self.is_active:
            raise ValidationError("User is already inactive.")
        self.status = UserStatus.INACTIVE

    def reactivate(self, actor: "User") -> None:
        if self.is_active:
            raise ValidationError("User is already active.")
        self.status = UserStatus.ACTIVE

    def change_role(self, actor: "User", role: UserRole) -> None:
        if role == self.role:
            return
        if actor.id == self.id:
            raise PermissionDeniedError("You cannot change your own role.")
        self.role = role

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
