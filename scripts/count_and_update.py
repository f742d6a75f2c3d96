#!/usr/bin/env python3
"""
Count skipped/flaky tests in a checked-out repo and merge the result
into the data.json file used by the static dashboard.

Meant for CI, where the repository is already checked out.

Usage:
    python scripts/count_and_update.py <repo-checkout-path> <data-json-path> [branch]

Example:
    python scripts/count_and_update.py ./wix-data-client ./public/data.json master
"""
import argparse
import sys
from pathlib import Path

# Add app to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.config import get_settings
from app.constants import DEFAULT_BRANCH
from app.services.scanner import SkipScanner
from app.utils.data_json import merge_entry
from app.utils.helpers import utc_today


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Count skipped tests in a checkout and update the dashboard data.json"
    )
    parser.add_argument("repo_path", help="Path to the repository checkout")
    parser.add_argument("data_json_path", help="Path to the data.json file to update")
    parser.add_argument("branch", nargs="?", default=DEFAULT_BRANCH, help="Branch the checkout is on")
    args = parser.parse_args()

    settings = get_settings()
    scanner = SkipScanner(
        extensions=settings.scan_extensions,
        excluded_dirs=settings.scan_excluded_dirs,
        max_workers=settings.SCAN_MAX_WORKERS,
    )

    try:
        result = scanner.scan(args.repo_path)
    except OSError as e:
        print(f"✗ Error: {e}", file=sys.stderr)
        sys.exit(1)

    today = utc_today()
    print(f"Date:           {today.isoformat()}")
    print(f"Branch:         {args.branch}")
    print(f"Files scanned:  {result.files_scanned}")
    print(f"Total tests:    {result.total_tests}")
    print(f"Skipped/flaky:  {result.skipped_count}")

    count = merge_entry(
        args.data_json_path,
        day=today,
        branch=args.branch,
        total_tests=result.total_tests,
        skipped_count=result.skipped_count,
        repo=settings.REPO_IDENTIFIER,
    )
    print(f"\nUpdated {args.data_json_path} ({count} total entries)")


if __name__ == "__main__":
    main()
