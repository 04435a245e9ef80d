import os
import sys
from dotenv import load_dotenv

# Load environment variables from the .env file in the project root before settings are built
dotenv_path = os.path.join(os.path.dirname(__file__), '..', '.env')
load_dotenv(dotenv_path=dotenv_path)

from solar_gallery.core.blob_store import MinioBlobStore
from solar_gallery.core.db import SessionLocal, create_db_tables
from solar_gallery.core.logging_config import setup_logging
from solar_gallery.services.catalog_sync import GalleryCatalogSync


def main() -> int:
    setup_logging()
    print("Starting database/storage sync...")

    try:
        store = MinioBlobStore.from_settings(ensure_bucket=False)
    except Exception as e:
        print(f"Fatal: could not create MinIO client: {e}")
        return 1

    create_db_tables()
    db = SessionLocal()
    try:
        catalog_sync = GalleryCatalogSync(db, store)

        # 1. Sync storage objects into the catalog
        print("\nSyncing storage files to catalog...")
        report = catalog_sync.sync()
        print(f"Synced {report.synced_count} files ({report.skipped_count} already present)")
        if report.errors:
            print("Sync errors:")
            for error in report.errors:
                print(f"  - {error}")

        # 2. Catalog totals
        summary = catalog_sync.summarize()
        print(f"\nTotal files in catalog: {summary['total']}")
        print(f"HEIC files needing conversion: {summary['heic_pending_conversion']}")
        print(f"Already converted files: {summary['converted']}")

        # 3. Accessibility
        print("\nValidating file accessibility...")
        audit = catalog_sync.audit_accessibility()
        for entry in audit.inaccessible:
            print(f"  Inaccessible: {entry['filename']} ({entry['reason']})")
        print(f"Accessible files: {audit.accessible_count}")
        print(f"Inaccessible files: {audit.inaccessible_count}")

        if summary['heic_pending_conversion']:
            print("\nNext steps:")
            print("  1. Run the 'tasks.gallery.convert_pending_heic' Celery task to convert remaining HEIC files")
            print("  2. Check that HEIC files in object storage are not truncated (scripts/check_object_sizes.py)")
    finally:
        db.close()

    print("\nScript finished.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
