#!/usr/bin/env python3
"""
Seed the summary store with demo history.

Writes 30 days of random-walk data for master and develop. Existing rows for
those days are overwritten.

Usage:
    python scripts/seed_demo_data.py [--days 30] [--seed 42]
"""
import argparse
import random
import sys
from pathlib import Path

# Add app to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.config import get_settings
from app.services.summary_store import SummaryStore
from app.utils.demo_data import DEMO_BRANCHES, DEMO_DAYS, seed_demo_history


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Seed the dashboard DB with demo data")
    parser.add_argument("--days", type=int, default=DEMO_DAYS, help="Number of days to generate")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducible data")
    args = parser.parse_args()

    settings = get_settings()
    store = SummaryStore(settings.DATABASE_URL)
    try:
        store.init_schema()
        written = seed_demo_history(store, days=args.days, rng=random.Random(args.seed))
    finally:
        store.close()

    print(f"Seeded {args.days} days × {len(DEMO_BRANCHES)} branches = {written} rows.")


if __name__ == "__main__":
    main()
