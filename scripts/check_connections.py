#!/usr/bin/env python3
"""
Connection Check Script

Run this to verify MongoDB, change streams and file storage are usable.
Usage: python scripts/check_connections.py
"""
from pymongo.errors import PyMongoError

from careerconnect.core.config import get_settings
from careerconnect.db.mongodb import get_collection, get_mongo_db, test_mongo_connection, COLLECTIONS


def main():
    settings = get_settings()
    print("=" * 50)
    print("CAREERCONNECT - CONNECTION CHECK")
    print("=" * 50)

    print("\n[1] MongoDB...")
    print(f"    URI: {settings.mongodb_uri}")
    print(f"    Database: {settings.mongodb_db}")
    if not test_mongo_connection():
        print("    ❌ MongoDB: FAILED")
        return
    print("    ✅ MongoDB: CONNECTED")
    print(f"    Collections: {', '.join(sorted(get_mongo_db().list_collection_names())) or '(none yet)'}")

    print("\n[2] Change streams (live admin feeds)...")
    try:
        with get_collection(COLLECTIONS["activities"]).watch(max_await_time_ms=100) as stream:
            stream.try_next()
        print("    ✅ Change streams: AVAILABLE")
    except PyMongoError as e:
        print(f"    ⚠️  Change streams unavailable, feeds will poll every "
              f"{settings.snapshot_poll_interval_seconds}s ({e})")

    print("\n[3] File storage...")
    if settings.cloudinary_enabled:
        print(f"    ✅ Cloudinary: {settings.cloudinary_cloud_name} (preset {settings.cloudinary_upload_preset})")
        if not settings.cloudinary_can_delete:
            print("    ⚠️  Cloudinary API key/secret missing, remote deletes will be skipped")
    else:
        print("    ⚠️  Cloudinary not configured, uploads go to GridFS")
    files = get_collection(f"{settings.gridfs_bucket}.files").estimated_document_count()
    print(f"    GridFS bucket '{settings.gridfs_bucket}': {files} file(s)")

    print("\n" + "=" * 50)
    print("Connection check complete!")
    print("=" * 50)


if __name__ == "__main__":
    main()
