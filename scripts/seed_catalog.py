#!/usr/bin/env python3
"""
Seed the local content catalog (places, stories, recommendations) from a JSON file.

Usage: python -m scripts.seed_catalog [path/to/catalog.json]

Rows are merged by primary key, so re-running the script updates the catalog
in place instead of duplicating it.
"""

import asyncio
import json
import logging
import sys
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict

from locallens.db.models import LocalRecommendationRecord, LocalStoryRecord, PlaceRecord
from locallens.db.session import DatabaseManager

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)
logger = logging.getLogger(__name__)

DEFAULT_CATALOG = Path(__file__).parent / "data" / "visakhapatnam.json"


@asynccontextmanager
async def performance_timer(operation: str):
    start = time.time()
    try:
        yield
    finally:
        logger.info(f"{operation} completed in {time.time() - start:.2f}s")


def load_catalog(path: Path) -> Dict[str, Any]:
    with open(path, encoding="utf-8") as f:
        catalog = json.load(f)
    location = catalog.get("location")
    if not location:
        raise ValueError(f"{path} has no 'location'")
    # places inherit the catalog's city
    for place in catalog.get("places", []):
        place.setdefault("location", location)
    return catalog


async def seed(path: Path = DEFAULT_CATALOG, db: DatabaseManager = None) -> Dict[str, int]:
    catalog = load_catalog(path)
    db = db or DatabaseManager()
    if not db.engine:
        await db.initialize()
    await db.init_db()

    counts = {"places": 0, "stories": 0, "recommendations": 0}
    async with performance_timer(f"Seeding {catalog['location']}"):
        async with db.get_session() as session:
            for row in catalog.get("places", []):
                await session.merge(PlaceRecord(**row))
                counts["places"] += 1
            for row in catalog.get("stories", []):
                await session.merge(LocalStoryRecord(**row))
                counts["stories"] += 1
            for row in catalog.get("recommendations", []):
                await session.merge(LocalRecommendationRecord(**row))
                counts["recommendations"] += 1
            await session.commit()

    logger.info(f"Seeded {counts}")
    return counts


async def main(path: Path) -> bool:
    db = DatabaseManager()
    try:
        await seed(path, db)
        return True
    except Exception as e:
        logger.error(f"Seeding failed: {e}")
        return False
    finally:
        await db.close()


if __name__ == "__main__":
    catalog_path = Path(sys.argv[1]) if len(sys.argv) > 1 else DEFAULT_CATALOG
    success = asyncio.run(main(catalog_path))
    sys.exit(0 if success else 1)
