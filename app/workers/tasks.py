import logging

from app.db.session import SessionLocal
from app.services.reminders import send_deadline_reminders
from app.workers.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(name="app.workers.tasks.deadline_reminder_job")
def deadline_reminder_job() -> int:
    db = SessionLocal()
    try:
        return send_deadline_reminders(db)
    except Exception:  # noqa: BLE001
        logger.exception("deadline_reminder_job_failed")
        db.rollback()
        raise
    finally:
        db.close()
