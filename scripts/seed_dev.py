#!/usr/bin/env python
"""Seed development database with sample index records.

Seeds search_videos with a handful of approved videos for local UI and
search testing, without running the video service or the worker.

Constraints:
- Refuses to run in staging or prod (VIDEOINDEX_ENV check)
- Idempotent: records are upserted by id
- Never runs automatically (manual invocation only)

Usage:
    cd python && PYTHONPATH=. DATABASE_URL=... python ../scripts/seed_dev.py
"""

import os
import sys
from datetime import UTC, datetime


def main():
    # 1. Environment check (hard fail in staging/prod)
    videoindex_env = os.getenv("VIDEOINDEX_ENV", "local")
    if videoindex_env not in ("local", "test"):
        print(f"ERROR: seed_dev.py refuses to run in VIDEOINDEX_ENV={videoindex_env}")
        sys.exit(1)

    # 2. Check DATABASE_URL
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        print("ERROR: DATABASE_URL environment variable must be set")
        sys.exit(1)

    # 3. Import sample data (single source of truth)
    from tests.fixtures import SEED_VIDEOS

    from videoindex.db.engine import create_db_engine
    from videoindex.db.session import create_session_factory, transaction
    from videoindex.schemas.video_detail import VideoDetail
    from videoindex.services.index_store import search_video_exists, upsert_search_video
    from videoindex.services.indexing import map_detail_to_record

    session_factory = create_session_factory(create_db_engine(database_url))
    now = datetime.now(UTC)

    # 4. Idempotent seeding
    created = []
    with session_factory() as db:
        with transaction(db):
            for payload in SEED_VIDEOS:
                detail = VideoDetail.model_validate(payload)
                created.append((detail, not search_video_exists(db, detail.id)))
                upsert_search_video(db, map_detail_to_record(detail, indexed_at=now))

    # 5. Report
    db_display = database_url.split("@")[1] if "@" in database_url else database_url
    print(f"Database: {db_display}")
    print(f"VIDEOINDEX_ENV: {videoindex_env}")
    print()
    for detail, was_created in created:
        print(f"{'✓ Created' if was_created else '• Updated'}: {detail.id} {detail.title}")


if __name__ == "__main__":
    main()
