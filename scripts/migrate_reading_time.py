import argparse
import logging
import sys

from dotenv import find_dotenv, load_dotenv

load_dotenv(find_dotenv(usecwd=True))

from dashboard.app.deps import get_supabase
from dashboard.services.articles import (
    BACKFILL_BATCH_SIZE,
    BACKFILL_PAUSE_SECONDS,
    backfill_reading_time,
)


def main() -> None:
    parser = argparse.ArgumentParser(description="Backfill reading time for saved articles")
    parser.add_argument("--batch-size", type=int, default=BACKFILL_BATCH_SIZE)
    parser.add_argument("--pause", type=float, default=BACKFILL_PAUSE_SECONDS)
    parser.add_argument("--dry-run", action="store_true", help="Count rows without writing")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    updated = backfill_reading_time(
        get_supabase(),
        batch_size=args.batch_size,
        pause=args.pause,
        dry_run=args.dry_run,
    )
    print("updated:", updated)


if __name__ == "__main__":
    main()
