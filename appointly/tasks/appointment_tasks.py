# ===== appointly/tasks/appointment_tasks.py =====
from datetime import datetime, timezone
import logging

from appointly.config.celery_config import celery_app
from appointly.config.database import get_db
from appointly.services.appointment.appointment_service import AppointmentService

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, max_retries=3)
def expire_confirmation_tokens(self):
    """Clear opt-in tokens that expired unredeemed; the appointments stay"""
    db_gen = get_db()
    db = next(db_gen)
    try:
        now = datetime.now(timezone.utc).replace(tzinfo=None)
        cleared = AppointmentService.expire_confirmation_tokens(db, now)
        logger.info(f"Cleared {cleared} expired confirmation tokens")
        return {"status": "success", "cleared": cleared}

    except Exception as exc:
        logger.error(f"Failed to expire confirmation tokens: {exc}")
        raise self.retry(exc=exc, countdown=60 * (2 ** self.request.retries))

    finally:
        db_gen.close()
