from sqlalchemy import Column, DateTime, ForeignKey, String, Text

from activityhub.models.base import Base, new_id, utc_now


class Category(Base):
    """Categories table. parent_id forms a tree; children are grouped in memory on read."""

    __tablename__ = "categories"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    image = Column(String(500), nullable=True)
    parent_id = Column(String(36), ForeignKey("categories.id"), nullable=True, index=True)
    created_at = Column(DateTime, nullable=False, default=utc_now)
