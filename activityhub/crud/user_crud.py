# User lookups and profile

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from activityhub.errors import StorageError
from activityhub.models.activity import Activity
from activityhub.models.participation import Participation
from activityhub.models.user import User
from activityhub.schemas.activity import ActivitySummary
from activityhub.schemas.profile import ParticipationOut, ProfileOut
from activityhub.schemas.user import ProfileUpdate

logger = logging.getLogger(__name__)


def get_user(db: Session, user_id: str) -> Optional[User]:
    return db.get(User, user_id)


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return (
        db.execute(select(User).options(selectinload(User.accounts)).where(User.email == email))
        .scalars()
        .first()
    )


def is_new_user(user: User) -> bool:
    """A user who has not filled in bio, location or interests yet."""
    return not user.bio and not user.location and not user.interests


def get_profile(db: Session, user: User) -> ProfileOut:
    """Profile plus the activities the user created and the ones they joined."""
    try:
        created = (
            db.execute(
                select(Activity).where(Activity.creator_id == user.id).order_by(Activity.start_date.asc())
            )
            .scalars()
            .all()
        )
        participations = (
            db.execute(
                select(Participation)
                .options(selectinload(Participation.activity))
                .where(Participation.user_id == user.id)
                .order_by(Participation.joined_at.desc())
            )
            .scalars()
            .all()
        )
    except SQLAlchemyError:
        logger.exception("Failed to load profile for %s", user.id)
        raise StorageError("Failed to fetch profile") from None

    return ProfileOut(
        id=user.id,
        email=user.email,
        name=user.name,
        image=user.image,
        bio=user.bio,
        location=user.location,
        interests=list(user.interests or []),
        is_new_user=is_new_user(user),
        created_activities=[ActivitySummary.model_validate(a) for a in created],
        participations=[
            ParticipationOut(
                id=p.id,
                status=p.status,
                joined_at=p.joined_at,
                activity=ActivitySummary.model_validate(p.activity),
            )
            for p in participations
        ],
    )


def update_profile(db: Session, user: User, payload: ProfileUpdate) -> ProfileOut:
    try:
        user.bio = payload.bio
        user.location = payload.location
        user.interests = [i.strip() for i in payload.interests if i.strip()]
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to update profile for %s", user.id)
        raise StorageError("Failed to update profile") from None
    return get_profile(db, user)
