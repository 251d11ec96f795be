# Activity model

from enum import Enum as PyEnum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from activityhub.models.base import Base, new_id, utc_now


class ActivityStatus(str, PyEnum):
    """Persisted activity status. Starts as upcoming; only the creator changes it afterwards."""

    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Stored as String(20); compare against ActivityStatus values in code.
STATUS_DEFAULT = ActivityStatus.UPCOMING.value


class Activity(Base):
    """
    Activities table.

    current_participants is a denormalized count of active participations.
    It is written only by services.participation (join/leave).
    """

    __tablename__ = "activities"

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    start_date = Column(DateTime, nullable=False, index=True)
    end_date = Column(DateTime, nullable=False)
    location = Column(String(200), nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    max_participants = Column(Integer, nullable=False)
    current_participants = Column(Integer, nullable=False, default=0, server_default="0")
    is_private = Column(Boolean, nullable=False, default=False)
    is_paid = Column(Boolean, nullable=False, default=False)
    price = Column(Float, nullable=True)  # stored, never charged
    images = Column(JSON, nullable=False, default=list)
    status = Column(String(20), nullable=False, default=STATUS_DEFAULT, server_default=STATUS_DEFAULT, index=True)
    creator_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    category_id = Column(String(36), ForeignKey("categories.id"), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=utc_now, index=True)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    creator = relationship("User", lazy="joined")
    category = relationship("Category", lazy="joined")
    participants = relationship(
        "Participation",
        back_populates="activity",
        cascade="all, delete-orphan",
        order_by="Participation.joined_at",
    )

    __table_args__ = (
        CheckConstraint("max_participants >= 1", name="ck_activity_max_participants"),
        CheckConstraint(
            "current_participants >= 0 AND current_participants <= max_participants",
            name="ck_activity_current_participants",
        ),
        CheckConstraint("end_date > start_date", name="ck_activity_time_window"),
    )
