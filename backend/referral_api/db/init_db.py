# backend/referral_api/db/init_db.py
"""
Explicit schema initialization.

    python -m referral_api.db.init_db            # create missing tables
    python -m referral_api.db.init_db --reset    # drop + recreate (destroys data)
"""

from __future__ import annotations

import argparse
import logging

from ..core.config import configure_logging
from . import session

logger = logging.getLogger(__name__)


def init_db(reset: bool = False) -> None:
    logger.info("Initializing database...")
    try:
        if reset:
            session.reset_tables()
            logger.info("Tables dropped and recreated.")
        else:
            session.ensure_tables()
            logger.info("Tables created or verified.")
    except Exception as e:
        logger.error("Error initializing DB: %s", e)
        raise


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Initialize the referrals database.")
    parser.add_argument("--reset", action="store_true", help="drop and recreate all tables")
    args = parser.parse_args(argv)
    configure_logging()
    init_db(reset=args.reset)


if __name__ == "__main__":
    main()
