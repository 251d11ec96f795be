# Category queries: listing (flat, roots, tree), lookup, create

import logging
from typing import Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from activityhub.errors import ConflictError, NotFoundError, StorageError
from activityhub.models.activity import Activity
from activityhub.models.category import Category
from activityhub.schemas.category import CategoryCreate, CategoryOut, CategoryTreeNode

logger = logging.getLogger(__name__)


def _activity_counts(db: Session) -> Dict[str, int]:
    rows = db.execute(select(Activity.category_id, func.count(Activity.id)).group_by(Activity.category_id)).all()
    return {category_id: count for category_id, count in rows}


def _to_out(category: Category, counts: Dict[str, int]) -> CategoryOut:
    out = CategoryOut.model_validate(category)
    out.activity_count = counts.get(category.id, 0)
    return out


def list_categories(db: Session, roots_only: bool = False) -> List[CategoryOut]:
    """All categories (or only those without a parent), by name, with activity counts."""
    stmt = select(Category).order_by(Category.name.asc())
    if roots_only:
        stmt = stmt.where(Category.parent_id.is_(None))
    try:
        categories = db.execute(stmt).scalars().all()
        counts = _activity_counts(db)
    except SQLAlchemyError:
        logger.exception("Failed to list categories")
        raise StorageError("Failed to fetch categories") from None
    return [_to_out(c, counts) for c in categories]


def category_tree(db: Session) -> List[CategoryTreeNode]:
    """
    Categories nested under their parents, built in memory from one flat query.

    A node whose parent_id points at a missing row is treated as a root.
    """
    flat = list_categories(db)
    nodes = {c.id: CategoryTreeNode(**c.model_dump()) for c in flat}

    roots: List[CategoryTreeNode] = []
    for node in nodes.values():
        parent: Optional[CategoryTreeNode] = nodes.get(node.parent_id) if node.parent_id else None
        if parent is None:
            roots.append(node)
        else:
            parent.children.append(node)
    return roots


def get_category(db: Session, category_id: str) -> CategoryOut:
    category = db.get(Category, category_id)
    if category is None:
        raise NotFoundError("Category not found")
    count = db.execute(select(func.count(Activity.id)).where(Activity.category_id == category_id)).scalar_one()
    return _to_out(category, {category_id: count})


def create_category(db: Session, payload: CategoryCreate) -> CategoryOut:
    """
    Insert a category. Names are unique (ConflictError); parent_id must exist (NotFoundError).
    There is no re-parenting, and a new row has no children, so no cycle can form here.
    """
    name = payload.name.strip()
    if db.execute(select(Category.id).where(Category.name == name)).first() is not None:
        raise ConflictError("Category name already exists")
    if payload.parent_id and db.get(Category, payload.parent_id) is None:
        raise NotFoundError("Parent category not found")

    category = Category(
        name=name,
        description=payload.description,
        image=payload.image,
        parent_id=payload.parent_id or None,
    )
    try:
        db.add(category)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Category name already exists") from None
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to create category %s", name)
        raise StorageError("Failed to create category") from None

    logger.info("Category %s created (%s)", category.id, name)
    return _to_out(category, {})
