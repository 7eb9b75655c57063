"""
Create the tables and the default administrator.

Run with ``python -m pharmapos.seed``. Safe to run more than once.
"""
import logging

from sqlalchemy.orm import Session

from pharmapos.auth import hash_password
from pharmapos.config import get_settings
from pharmapos.database import Base, SessionLocal, engine
from pharmapos.models.user import User, UserRole, UserStatus

logger = logging.getLogger(__name__)


def seed_admin(db: Session, name: str, email: str, password: str) -> User:
    """Return the admin with this email, creating it if missing."""
    email = email.strip().lower()
    admin = db.query(User).filter(User.email == email).first()
    if admin:
        return admin

    admin = User(
        name=name,
        email=email,
        password=hash_password(password),
        role=UserRole.ADMIN,
        status=UserStatus.ACTIVE,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    logger.info(f"Admin account {email} created")
    return admin


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    settings = get_settings()

    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        admin = seed_admin(db, settings.ADMIN_NAME, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD)
        logger.info(f"Seed OK (admin: {admin.email})")
    finally:
        db.close()


if __name__ == "__main__":
    main()
