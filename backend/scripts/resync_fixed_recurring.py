"""
Move the generation window of open-ended fixed recurring entries forward.

Entries without effective_to only have occurrences up to the current month
plus FIXED_RECURRING_GENERATION_MONTHS_AHEAD. Run this at least once a month
(cron, systemd timer, platform scheduler) to keep that window filled.

Usage:
  cd backend
  python scripts/resync_fixed_recurring.py
  python scripts/resync_fixed_recurring.py --account-id <uuid> --dry-run
"""
from __future__ import annotations

import argparse
import logging
from uuid import UUID

from app.database import SessionLocal
from app.services.fixed_recurring_entry_service import FixedRecurringEntryService

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def resync(account_ids: list[UUID] | None, dry_run: bool) -> dict[str, int]:
    db = SessionLocal()
    try:
        summary = FixedRecurringEntryService(db).resync_open_ended(account_ids)
        if dry_run:
            db.rollback()
        else:
            db.commit()
        return summary
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Resync open-ended fixed recurring entries.")
    parser.add_argument(
        "--account-id",
        action="append",
        type=UUID,
        dest="account_ids",
        help="Limit to one account (repeatable).",
    )
    parser.add_argument("--dry-run", action="store_true", help="Roll back instead of committing.")
    args = parser.parse_args()

    summary = resync(args.account_ids, args.dry_run)
    logger.info(f"Resync summary{' (dry run)' if args.dry_run else ''}: {summary}")


if __name__ == "__main__":
    main()
