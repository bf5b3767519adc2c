import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import async_sessionmaker

from feedback_system.auth import get_admin_by_username, validate_admin_input
from feedback_system.config import app_conf
from feedback_system.database import async_session_maker
from feedback_system.models import Admin

logger = logging.getLogger(__name__)


async def seed_admin(session_factory: async_sessionmaker = async_session_maker) -> bool:
    """Create the initial admin if it does not exist yet. Returns True when created."""
    username, role = validate_admin_input(app_conf.ADMIN_USERNAME, app_conf.ADMIN_PASSWORD, "admin")

    async with session_factory() as db:
        if await get_admin_by_username(db, username) is not None:
            logger.info("Admin user already exists. Skipping creation.")
            return False

        db.add(Admin.create(username=username, password=app_conf.ADMIN_PASSWORD, role=role))
        try:
            await db.commit()
        except IntegrityError:
            # Another worker seeded it first
            await db.rollback()
            logger.info("Admin user created concurrently. Skipping creation.")
            return False

    logger.info(f"Default admin user '{username}' created")
    return True
