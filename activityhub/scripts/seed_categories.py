"""
Seed default categories.

Idempotent: existing names are left untouched, missing ones are inserted.
Run with: python -m activityhub.scripts.seed_categories
"""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from activityhub.models.category import Category

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = [
    ("Sports & Fitness", "Physical activities and sports events"),
    ("Arts & Culture", "Creative and cultural activities"),
    ("Education", "Learning and educational events"),
    ("Technology", "Tech meetups and workshops"),
    ("Social", "Social gatherings and meetups"),
    ("Outdoor & Adventure", "Outdoor activities and adventures"),
    ("Food & Drink", "Culinary experiences and tastings"),
    ("Health & Wellness", "Health and wellness activities"),
    ("Business & Career", "Professional development events"),
    ("Music & Entertainment", "Music events and entertainment"),
]


def seed_categories(db: Session) -> int:
    """Insert the missing default categories. Returns how many were created."""
    existing = set(db.execute(select(Category.name)).scalars().all())
    created = 0
    for name, description in DEFAULT_CATEGORIES:
        if name in existing:
            continue
        db.add(Category(name=name, description=description))
        created += 1
    db.commit()
    logger.info("Seeded categories: %d created, %d already present", created, len(DEFAULT_CATEGORIES) - created)
    return created


def main() -> None:
    from activityhub.database import SessionLocal

    logging.basicConfig(level=logging.INFO)
    db = SessionLocal()
    try:
        seed_categories(db)
    finally:
        db.close()


if __name__ == "__main__":
    main()
