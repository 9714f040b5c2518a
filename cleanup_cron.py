#!/usr/bin/env python3
"""
Cron job entry point for temporary image cleanup.

Removes per-request image folders (request-<uuid>) under TEMP_IMAGE_DIR that
are older than TEMP_IMAGE_MAX_AGE_HOURS. It executes the cleanup, prints
results, and exits.

Usage:
    python cleanup_cron.py [--dry-run]

Cron schedule recommendation: 0 */6 * * * (every 6 hours)
"""

import sys
from datetime import datetime, timezone


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    dry_run = "--dry-run" in argv

    print(f"\n{'='*60}")
    print(f"Image Cleanup Job - {datetime.now(timezone.utc).isoformat()}")
    print(f"{'='*60}\n")

    from config.settings import get_settings
    from src.storage.image_store import ImageStore

    settings = get_settings()
    store = ImageStore(settings.TEMP_IMAGE_DIR)

    print(f"Image root: {settings.TEMP_IMAGE_DIR}")
    print(f"Max age: {settings.TEMP_IMAGE_MAX_AGE_HOURS}h")

    result = store.cleanup_expired(settings.TEMP_IMAGE_MAX_AGE_HOURS, dry_run=dry_run)

    print(f"\nCleanup Result:")
    print(f"  Success: {result['success']}")
    print(f"  Namespaces found: {result['namespaces_found']}")
    print(f"  Namespaces deleted: {result['namespaces_deleted']}")
    print(f"  Dry run: {result['dry_run']}")
    print(f"  Cutoff time: {result['cutoff_time']}")

    if result['errors']:
        print(f"  Errors: {result['errors']}")
        return 1

    print(f"\n{'='*60}")
    print("Cleanup completed successfully")
    print(f"{'='*60}\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
