# core/scheduler.py
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
import traceback

from core.config import settings
from core.logging_config import logger
from core.notifications import send_email
from jobs import operations_daily_job


def run_daily_digest():
    """Builds and emails the operations digest; failures are emailed too."""
    try:
        logger.info("[SCHEDULER] Building daily operations digest...")
        operations_daily_job.run()

    except Exception as e:
        logger.error(f"[SCHEDULER] Daily digest failed: {e}")
        try:
            send_email(
                subject="[FieldOps Pro] Daily Digest Failed",
                body=f"Error: {e}\n\nTraceback:\n{traceback.format_exc()}",
            )
        except Exception as mail_error:
            logger.error(f"[SCHEDULER] Failure alert email failed: {mail_error}")


def start_scheduler() -> BackgroundScheduler:
    """
    Initialize the APScheduler background process.
    Runs the digest once a day at DAILY_DIGEST_HOUR_UTC.
    """
    scheduler = BackgroundScheduler(timezone="UTC")

    scheduler.add_job(
        run_daily_digest,
        trigger=CronTrigger(hour=settings.DAILY_DIGEST_HOUR_UTC, minute=0),
        id="daily_operations_digest",
        replace_existing=True,
    )

    scheduler.start()
    logger.info(f"Scheduler started. Daily digest set for {settings.DAILY_DIGEST_HOUR_UTC:02d}:00 UTC.")
    return scheduler
