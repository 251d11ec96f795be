# Join/leave (row lock + conditional counter update to prevent overbooking)
#
# These two functions are the only writers of participations rows and of
# activities.current_participants. Each runs as one transaction: commit on
# success, full rollback on any error.

import logging
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, lazyload

from activityhub.crud.activity_crud import get_activity
from activityhub.errors import ConflictError, NotFoundError, ServiceError, StorageError
from activityhub.models.activity import Activity
from activityhub.models.participation import Participation, ParticipationStatus

logger = logging.getLogger(__name__)

ALREADY_PARTICIPATING = "already participating"
ACTIVITY_FULL = "activity full"


def _lock_activity(db: Session, activity_id: str) -> Optional[Activity]:
    """
    SELECT ... FOR UPDATE on the activity row. Concurrent joins/leaves on
    the same activity queue here until the holder commits or rolls back.

    Eager joins are switched off: Postgres refuses FOR UPDATE on the
    nullable side of an outer join. populate_existing so a counter already
    in the identity map is re-read under the lock.
    """
    return (
        db.query(Activity)
        .options(lazyload("*"))
        .populate_existing()
        .filter(Activity.id == activity_id)
        .with_for_update()
        .first()
    )


def _find_participation(db: Session, activity_id: str, user_id: str) -> Optional[Participation]:
    return (
        db.query(Participation)
        .options(lazyload("*"))
        .filter(
            Participation.activity_id == activity_id,
            Participation.user_id == user_id,
        )
        .first()
    )


def join_activity(db: Session, activity_id: str, user_id: str) -> Activity:
    """
    Add ``user_id`` to the activity.

    Checks, in order:
    1. activity exists (NotFoundError)
    2. no participation yet for (user, activity) (ConflictError "already participating")
    3. current_participants < max_participants (ConflictError "activity full")

    Then inserts a CONFIRMED participation and increments the counter with
    ``UPDATE ... WHERE current_participants < max_participants``. Zero
    updated rows means another join took the last slot.

    Returns the refreshed activity with creator, category and participants.
    """
    try:
        activity = _lock_activity(db, activity_id)
        if activity is None:
            raise NotFoundError("Activity not found")

        if _find_participation(db, activity_id, user_id) is not None:
            raise ConflictError(ALREADY_PARTICIPATING)

        if activity.current_participants >= activity.max_participants:
            raise ConflictError(ACTIVITY_FULL)

        db.add(
            Participation(
                user_id=user_id,
                activity_id=activity_id,
                status=ParticipationStatus.CONFIRMED.value,
            )
        )
        db.flush()

        result = db.execute(
            update(Activity)
            .where(
                Activity.id == activity_id,
                Activity.current_participants < Activity.max_participants,
            )
            .values(current_participants=Activity.current_participants + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ConflictError(ACTIVITY_FULL)

        db.commit()

    except ServiceError as e:
        db.rollback()
        logger.info("Join rejected activity=%s user=%s: %s", activity_id, user_id, e.message)
        raise

    except IntegrityError:
        # Unique (user_id, activity_id) violated by a concurrent join of the same user
        db.rollback()
        if _find_participation(db, activity_id, user_id) is not None:
            logger.info("Join rejected activity=%s user=%s: %s", activity_id, user_id, ALREADY_PARTICIPATING)
            raise ConflictError(ALREADY_PARTICIPATING) from None
        logger.exception("Join failed activity=%s user=%s", activity_id, user_id)
        raise StorageError("Failed to join activity") from None

    except SQLAlchemyError:
        db.rollback()
        logger.exception("Join failed activity=%s user=%s", activity_id, user_id)
        raise StorageError("Failed to join activity") from None

    logger.info("User %s joined activity %s", user_id, activity_id)
    return get_activity(db, activity_id)


def leave_activity(db: Session, activity_id: str, user_id: str) -> Activity:
    """
    Remove ``user_id`` from the activity.

    - activity must exist (NotFoundError)
    - participation must exist (NotFoundError)
    - row delete + counter decrement commit together; the decrement is
      guarded with ``current_participants > 0``
    """
    try:
        activity = _lock_activity(db, activity_id)
        if activity is None:
            raise NotFoundError("Activity not found")

        participation = _find_participation(db, activity_id, user_id)
        if participation is None:
            raise NotFoundError("Not participating in this activity")

        db.delete(participation)
        db.flush()

        db.execute(
            update(Activity)
            .where(Activity.id == activity_id, Activity.current_participants > 0)
            .values(current_participants=Activity.current_participants - 1)
            .execution_options(synchronize_session=False)
        )
        db.commit()

    except ServiceError as e:
        db.rollback()
        logger.info("Leave rejected activity=%s user=%s: %s", activity_id, user_id, e.message)
        raise

    except SQLAlchemyError:
        db.rollback()
        logger.exception("Leave failed activity=%s user=%s", activity_id, user_id)
        raise StorageError("Failed to leave activity") from None

    logger.info("User %s left activity %s", user_id, activity_id)
    return get_activity(db, activity_id)
