# User and linked OAuth accounts

from sqlalchemy import Column, DateTime, ForeignKey, JSON, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from activityhub.models.base import Base, new_id, utc_now


class User(Base):
    """Users table. One row per email; identities from providers hang off ``accounts``."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(100), nullable=True)
    image = Column(String(500), nullable=True)  # avatar url
    bio = Column(Text, nullable=True)
    location = Column(String(200), nullable=True)
    interests = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=False, default=utc_now, onupdate=utc_now)

    accounts = relationship(
        "Account",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="Account.created_at",
    )


class Account(Base):
    """OAuth provider account linked to a user."""

    __tablename__ = "accounts"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    provider = Column(String(30), nullable=False)  # google / github / facebook
    provider_account_id = Column(String(255), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utc_now)

    user = relationship("User", back_populates="accounts")

    __table_args__ = (UniqueConstraint("provider", "provider_account_id", name="uq_account_provider_account"),)
