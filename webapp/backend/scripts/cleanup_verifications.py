#!/usr/bin/env python3
"""
Delete email verification links that have expired.

Meant to run from cron, separately from the API process.

Usage:
    cd webapp/backend
    python scripts/cleanup_verifications.py
    python scripts/cleanup_verifications.py --dry-run
"""

import argparse
import logging
import os
import sys
from datetime import datetime, timezone
from typing import List, Optional

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import load_settings  # noqa: E402
from database import create_db_engine, create_session_factory  # noqa: E402
from models import EmailVerification  # noqa: E402
from services.auth_service import delete_expired_verifications  # noqa: E402

logger = logging.getLogger("cleanup_verifications")


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Delete expired email verification links")
    parser.add_argument("--dry-run", action="store_true", help="Only count expired links")
    args = parser.parse_args(argv)

    settings = load_settings()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(message)s")

    engine = create_db_engine(settings.database_url)
    session_factory = create_session_factory(engine)
    now = datetime.now(timezone.utc)

    db = session_factory()
    try:
        if args.dry_run:
            count = db.query(EmailVerification).filter(EmailVerification.expires_at < now).count()
            logger.info("%d expired verification links would be deleted", count)
        else:
            count = delete_expired_verifications(db, now)
            logger.info("Deleted %d expired verification links", count)
    finally:
        db.close()
        engine.dispose()

    return 0


if __name__ == "__main__":
    sys.exit(main())
