"""Database bootstrapping utilities."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.packages.documents.core.config import get_settings
from app.packages.documents.core.enums import UserRoleEnum
from app.packages.documents.core.security import get_password_hash
from app.packages.documents.db import session as db_session
from app.packages.documents.models import Base, User

logger = logging.getLogger(__name__)


def init_db() -> None:
    """Create all database tables if they do not exist and seed the administrator."""
    Base.metadata.create_all(bind=db_session.engine)
    get_settings().upload_directory.mkdir(parents=True, exist_ok=True)

    session = db_session.SessionLocal()
    try:
        _seed_admin(session)
        session.commit()
    except Exception:  # pragma: no cover - initialization failures should not crash gracefully
        session.rollback()
        logger.exception("Failed to seed default data during database initialization")
        raise
    finally:
        session.close()


def _seed_admin(db: Session) -> None:
    """Ensure the built-in administrator account exists with the ADMIN role."""
    settings = get_settings()
    admin_user = db.query(User).filter(User.username == settings.default_admin_username).first()
    if admin_user is None:
        admin_user = User(
            username=settings.default_admin_username,
            email=settings.default_admin_email,
            hashed_password=get_password_hash(settings.default_admin_password),
            role=UserRoleEnum.ADMIN.value,
            is_active=True,
        )
        db.add(admin_user)
        db.flush()
        logger.info("Seeded default administrator '%s'", admin_user.username)
    elif admin_user.role != UserRoleEnum.ADMIN.value:
        admin_user.role = UserRoleEnum.ADMIN.value
        db.add(admin_user)
