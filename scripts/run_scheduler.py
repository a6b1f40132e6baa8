"""Long-running process that sends the due tasks notification once a day."""
from __future__ import annotations

import argparse
import asyncio
import logging
import time
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Iterator

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from filelock import FileLock

from taskboard.config import Settings, get_settings
from taskboard.database import run_migrations
from taskboard.logging_config import configure_logging
from scripts.send_due_notifications import perform_due_notifications


logger = logging.getLogger("scheduler")

DUE_TASKS_JOB_ID = "due_tasks"


@contextmanager
def scheduler_lock(lock_path: Path) -> Iterator[FileLock]:
    """Hold the single-instance lock; raises ``filelock.Timeout`` if another scheduler owns it."""
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    lock = FileLock(str(lock_path))
    lock.acquire(timeout=0)
    logger.info("Acquired scheduler lock at %s", lock_path)
    try:
        yield lock
    finally:
        lock.release()
        if lock_path.exists():
            lock_path.unlink()
        logger.info("Released scheduler lock at %s", lock_path)


async def run_daily_job(target_date: date | None = None) -> dict[int, int]:
    """Send due task emails for ``target_date`` (today by default); failures are logged, not raised."""
    target_date = target_date or date.today()
    started = time.monotonic()
    logger.info("Due tasks job started for %s", target_date.isoformat())

    try:
        summary = await asyncio.to_thread(perform_due_notifications, target_date)
    except Exception:
        logger.exception("Due tasks job failed for %s", target_date.isoformat())
        return {}

    logger.info(
        "Due tasks job finished in %.2fs | projects=%d | emails=%d",
        time.monotonic() - started,
        len(summary),
        sum(summary.values()),
    )
    return summary


def build_scheduler(settings: Settings) -> AsyncIOScheduler:
    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        run_daily_job,
        "cron",
        id=DUE_TASKS_JOB_ID,
        hour=settings.scheduler_hour,
        minute=settings.scheduler_minute,
        coalesce=True,
        max_instances=1,
    )
    return scheduler


async def main(run_now: bool) -> None:
    configure_logging()
    settings = get_settings()
    run_migrations()

    with scheduler_lock(settings.scheduler_lock_file):
        if run_now:
            await run_daily_job()
            return

        scheduler = build_scheduler(settings)
        scheduler.start()
        logger.info(
            "Scheduler running (due tasks at %02d:%02d). Press Ctrl+C to exit.",
            settings.scheduler_hour,
            settings.scheduler_minute,
        )
        try:
            await asyncio.Event().wait()
        finally:
            scheduler.shutdown(wait=False)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run the due tasks notification scheduler")
    parser.add_argument("--run-now", action="store_true", help="Send today's due task emails and exit")
    args = parser.parse_args()

    try:
        asyncio.run(main(run_now=args.run_now))
    except TimeoutError:
        logger.warning("Scheduler already running; exiting.")
