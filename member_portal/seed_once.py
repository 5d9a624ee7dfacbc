"""CLI helper to create the schema and reconcile default data once."""
from __future__ import annotations

import argparse
import logging

from .db import Store
from .services import init_db, seed_defaults
from .settings import settings

logger = logging.getLogger(__name__)


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--demo",
        action="store_true",
        default=settings.seed_demo_data,
        help="Also seed demo members, radio settings, gallery images and news",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    store = Store(settings.database_url)
    try:
        init_db(store)
        counts = seed_defaults(store, include_demo=args.demo)
        logger.info("Seeding finished: %s", counts)
    finally:
        store.dispose()


if __name__ == "__main__":
    main()
