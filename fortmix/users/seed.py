from loguru import logger
from sqlalchemy.orm import Session

from fortmix.config import Settings
from fortmix.users import crud as user_crud
from fortmix.users.auth import hash_password
from fortmix.users.roles import Role


def seed_owner(db: Session, settings: Settings):
    """Create the first Owner account when the users table is empty."""
    if user_crud.count_users(db) > 0:
        return None

    try:
        owner = user_crud.create_user(
            db,
            username=settings.ADMIN_USERNAME.strip().lower(),
            hashed_password=hash_password(settings.ADMIN_PASSWORD),
            name=settings.ADMIN_NAME,
            role=Role.OWNER.value,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"Seeded owner account '{owner.username}'")
    return owner
