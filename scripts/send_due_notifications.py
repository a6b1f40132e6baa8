"""Due tasks script - emails project members the list of tasks that are due."""
from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from taskboard.database import run_migrations, session_scope
from taskboard.logging_config import configure_logging
from taskboard.services.task_notifier import TaskNotifier


logger = logging.getLogger("scripts.send_due_notifications")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Send due task notifications",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Tasks due today or earlier (default for daily cron)
  python scripts/send_due_notifications.py

  # Pretend today is a specific date
  python scripts/send_due_notifications.py --date 2026-10-16
        """
    )
    parser.add_argument(
        "--date",
        type=str,
        help="Reference date (YYYY-MM-DD). Defaults to today."
    )
    parser.add_argument(
        "--skip-migrations",
        action="store_true",
        help="Do not apply pending migrations before running"
    )
    return parser.parse_args()


def perform_due_notifications(target_date: date) -> dict[int, int]:
    """
    Send the task_due notification for every project with due tasks.

    Returns:
        dict: mapping project id -> emails sent
    """
    with session_scope() as db:
        return TaskNotifier(db).notify_due_tasks(target_date)


def main() -> int:
    args = parse_args()
    configure_logging()

    try:
        target_date = date.fromisoformat(args.date) if args.date else date.today()
    except ValueError:
        logger.error("Invalid --date %r, expected YYYY-MM-DD", args.date)
        return 2

    if not args.skip_migrations:
        run_migrations()

    summary = perform_due_notifications(target_date)
    logger.info(
        "Due task notifications for %s | projects=%d | emails=%d",
        target_date.isoformat(),
        len(summary),
        sum(summary.values()),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
