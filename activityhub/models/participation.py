# Participation model: one user in one activity

from enum import Enum as PyEnum

from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import relationship

from activityhub.models.base import Base, new_id, utc_now


class ParticipationStatus(str, PyEnum):
    """Join creates CONFIRMED. PENDING/CANCELLED exist in the data model but no API path sets them yet."""

    CONFIRMED = "confirmed"
    PENDING = "pending"
    CANCELLED = "cancelled"


class Participation(Base):
    """Participations table. At most one row per (user, activity)."""

    __tablename__ = "participations"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    activity_id = Column(String(36), ForeignKey("activities.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=ParticipationStatus.CONFIRMED.value)
    joined_at = Column(DateTime, nullable=False, default=utc_now)

    user = relationship("User", lazy="joined")
    activity = relationship("Activity", back_populates="participants")

    __table_args__ = (UniqueConstraint("user_id", "activity_id", name="uq_participation_user_activity"),)
