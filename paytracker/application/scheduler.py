"""
Background scheduler: runs the daily bill reminder job inside the API process.
"""
import logging
from datetime import datetime
from zoneinfo import ZoneInfo

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler(daemon=True)


def _run_reminders(app_state):
    """
    One reminder pass. `app_state` is the FastAPI app.state holding the
    settings, auth provider, email sender and store factory built at startup.
    """
    from paytracker.application.container import build_services

    settings = app_state.settings
    store, close = app_state.open_store()
    try:
        services = build_services(store, app_state.auth_provider, app_state.email_sender,
                                  app_state.email_locks, settings.TIMEZONE)
        today = datetime.now(ZoneInfo(settings.TIMEZONE)).date()
        services.reminders.dispatch_due_reminders(today)
    except Exception:
        logger.exception("Reminder dispatch job failed")
    finally:
        close()


def start_scheduler(app_state):
    """Start the background scheduler with the daily reminder job"""
    settings = app_state.settings
    scheduler.add_job(
        _run_reminders,
        CronTrigger(hour=settings.REMINDER_HOUR_UTC, minute=0, timezone="UTC"),
        args=[app_state],
        id="bill_reminders",
        replace_existing=True,
    )
    scheduler.start()
    logger.info("Scheduler started: bill_reminders (%02d:00 UTC)", settings.REMINDER_HOUR_UTC)


def shutdown_scheduler():
    """Gracefully stop the scheduler"""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
