"""Delete read notifications past the retention window.

Usage:
    python -m app.scripts.purge_notifications [--days 30]

Intended to run from cron; the web process never purges.
"""

from __future__ import annotations

import argparse
import logging

from app.config import get_settings
from app.db.session import SessionLocal
from app.services.notifications import purge_read_notifications

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Purge old read notifications")
    parser.add_argument(
        "--days",
        type=int,
        default=get_settings().notification_retention_days,
        help="Delete read notifications older than this many days",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    db = SessionLocal()
    try:
        deleted = purge_read_notifications(db, older_than_days=args.days)
    finally:
        db.close()
    print(f"Deleted {deleted} read notifications older than {args.days} days.")
    return deleted


if __name__ == "__main__":
    main()
