import logging
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.database import SessionLocal
from app.models.profile import Profile, ProfileRole

logger = logging.getLogger(__name__)

def init_system_data():
    """
    Checks if the system needs initialization.
    If BOOTSTRAP_ADMIN_EMAIL is set and no profile exists yet, creates the
    first admin profile so the catalog and other profiles can be managed.
    """
    admin_email = settings.bootstrap_admin_email.strip().lower()
    if not admin_email:
        return

    db = SessionLocal()
    try:
        profile_count = db.query(Profile).count()
        if profile_count == 0:
            logger.info("Running startup initialization...")
            admin = Profile(
                email=admin_email,
                full_name="System Admin",
                role=ProfileRole.ADMIN,
                is_active=True,
            )
            db.add(admin)
            db.commit()
            logger.info(f"✓ Created bootstrap admin profile {admin.id}: {admin_email}")
        else:
            logger.info(f"System initialization check: {profile_count} profile(s) found.")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error during system initialization check: {str(e)}", exc_info=True)
        raise
    finally:
        db.close()
