"""
scripts/seed_locations.py

Run this from your project root to create the tables and load the location
hierarchy without starting the API:

    python -m scripts.seed_locations
    python -m scripts.seed_locations --expand "tamil nadu"

The API seeds the same rows on startup; this is for fresh databases and for
checking what a location search will match.
"""

import argparse
import sys

from app.core.database import SessionLocal, init_db, wait_for_database
from app.core.logging_config import setup_logging
from app.services.locations import expand_location, load_location_index, seed_locations


def main(argv=None):
    parser = argparse.ArgumentParser(description="Seed the location hierarchy.")
    parser.add_argument("--expand", metavar="QUERY", help="print the search tokens for a location")
    args = parser.parse_args(argv)

    setup_logging()
    wait_for_database()
    init_db()

    db = SessionLocal()
    try:
        added = seed_locations(db)
        index = load_location_index(db)
    except Exception as e:
        db.rollback()
        print(f"Failed: {e}")
        sys.exit(1)
    finally:
        db.close()

    print(f"\nLocations added: {added} (total {len(index)})")

    if args.expand:
        tokens = expand_location(index, args.expand)
        print(f"\n'{args.expand}' expands to {len(tokens)} tokens:")
        for token in tokens:
            print(f"   {token}")
    print()


if __name__ == "__main__":
    main()
