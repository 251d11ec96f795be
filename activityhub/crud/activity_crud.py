# Activity queries: filtered/sorted/paginated listing, detail, create, status update

import calendar
import logging
import math
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple
from zoneinfo import ZoneInfo

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from activityhub.config import APP_TIMEZONE, MAX_PAGE_SIZE
from activityhub.errors import ConflictError, ForbiddenError, NotFoundError, StorageError
from activityhub.models.activity import Activity, STATUS_DEFAULT
from activityhub.models.base import to_utc_naive, utc_now
from activityhub.models.category import Category
from activityhub.models.participation import Participation, ParticipationStatus
from activityhub.schemas.activity import ActivityCreate, ActivityPage, ActivityQuery, ActivitySummary, Pagination
from activityhub.services.activity_status import check_status_transition

logger = logging.getLogger(__name__)

ORDER_COLUMNS = {
    "start_date": Activity.start_date,
    "created_at": Activity.created_at,
    "title": Activity.title,
}


def _add_one_month(dt: datetime) -> datetime:
    """Same day next month, clamped to the month's last day (Jan 31 -> Feb 28/29)."""
    year, month = (dt.year + 1, 1) if dt.month == 12 else (dt.year, dt.month + 1)
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def date_window(
    date_filter: str,
    now: Optional[datetime] = None,
    tz_name: str = APP_TIMEZONE,
) -> Tuple[datetime, datetime, bool]:
    """
    start_date bounds for the relative date filter, as naive UTC.

    Anchored at 00:00 of the current day in ``tz_name``:
    - today:    [start, start + 1 day)
    - tomorrow: [start + 1 day, start + 2 days)
    - week:     [start, start + 7 days]
    - month:    [start, start + 1 calendar month]

    Returns (lower, upper, upper_inclusive). ``now`` is naive UTC or aware.
    """
    tz = ZoneInfo(tz_name)
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    local_now = now.astimezone(tz)
    start_of_day = datetime(local_now.year, local_now.month, local_now.day, tzinfo=tz)

    if date_filter == "today":
        lower, upper, inclusive = start_of_day, start_of_day + timedelta(days=1), False
    elif date_filter == "tomorrow":
        lower, upper, inclusive = start_of_day + timedelta(days=1), start_of_day + timedelta(days=2), False
    elif date_filter == "week":
        lower, upper, inclusive = start_of_day, start_of_day + timedelta(days=7), True
    elif date_filter == "month":
        lower, upper, inclusive = start_of_day, _add_one_month(start_of_day), True
    else:
        raise ValueError(f"Unknown date filter: {date_filter}")

    return to_utc_naive(lower), to_utc_naive(upper), inclusive


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_filters(query: ActivityQuery, now: Optional[datetime] = None) -> List:
    """Compile the optional filter fields into WHERE clauses (AND-ed by the caller)."""
    clauses = []

    if query.search:
        pattern = f"%{_escape_like(query.search)}%"
        clauses.append(
            or_(
                Activity.title.ilike(pattern, escape="\\"),
                Activity.description.ilike(pattern, escape="\\"),
                Activity.location.ilike(pattern, escape="\\"),
            )
        )

    if query.category:
        clauses.append(Activity.category_id == query.category)

    if query.status:
        clauses.append(Activity.status == query.status)

    if query.creator_id:
        clauses.append(Activity.creator_id == query.creator_id)

    if query.participant_id:
        # Semi-join: at least one non-cancelled participation by this user
        clauses.append(
            select(Participation.id)
            .where(
                Participation.activity_id == Activity.id,
                Participation.user_id == query.participant_id,
                Participation.status != ParticipationStatus.CANCELLED.value,
            )
            .exists()
        )

    if query.date:
        lower, upper, inclusive = date_window(query.date, now)
        clauses.append(Activity.start_date >= lower)
        clauses.append(Activity.start_date <= upper if inclusive else Activity.start_date < upper)

    return clauses


def list_activities(db: Session, query: ActivityQuery, now: Optional[datetime] = None) -> ActivityPage:
    """
    One page of activities matching ``query`` plus pagination metadata.

    limit is capped at MAX_PAGE_SIZE; the capped value is used for skip,
    total_pages and page_size. Ties in the sort column are broken by id so
    pages never overlap.
    """
    limit = min(query.limit, MAX_PAGE_SIZE)
    skip = (query.page - 1) * limit
    clauses = build_filters(query, now)

    order_col = ORDER_COLUMNS[query.order_by]
    ordering = order_col.asc() if query.order_direction == "asc" else order_col.desc()

    try:
        total = db.execute(select(func.count()).select_from(Activity).where(*clauses)).scalar_one()
        activities = (
            db.execute(
                select(Activity)
                .where(*clauses)
                .order_by(ordering, Activity.id.asc())
                .offset(skip)
                .limit(limit)
            )
            .scalars()
            .all()
        )
    except SQLAlchemyError:
        logger.exception("Failed to list activities: %s", query.model_dump())
        raise StorageError("Failed to fetch activities") from None

    return ActivityPage(
        items=[ActivitySummary.model_validate(a) for a in activities],
        pagination=Pagination(
            total=total,
            total_pages=math.ceil(total / limit),
            current_page=query.page,
            page_size=limit,
            has_more=skip + len(activities) < total,
        ),
    )


def get_activity(db: Session, activity_id: str) -> Activity:
    """Activity with creator, category and participants. Raises NotFoundError."""
    try:
        activity = (
            db.query(Activity)
            .options(selectinload(Activity.participants))
            .populate_existing()
            .filter(Activity.id == activity_id)
            .first()
        )
    except SQLAlchemyError:
        logger.exception("Failed to load activity %s", activity_id)
        raise StorageError("Failed to fetch activity") from None
    if activity is None:
        raise NotFoundError("Activity not found")
    return activity


def create_activity(db: Session, payload: ActivityCreate, creator_id: str) -> Activity:
    """
    Insert a new activity owned by ``creator_id``.

    The payload is already validated (window, paid/price). The counter starts
    at 0 and status at "upcoming"; price is dropped for free activities.
    """
    if db.get(Category, payload.category_id) is None:
        raise NotFoundError("Category not found")

    activity = Activity(
        title=payload.title.strip(),
        description=payload.description,
        start_date=payload.start_date,
        end_date=payload.end_date,
        location=payload.location.strip(),
        latitude=payload.coordinates.lat if payload.coordinates else None,
        longitude=payload.coordinates.lng if payload.coordinates else None,
        max_participants=payload.max_participants,
        current_participants=0,
        is_private=payload.is_private,
        is_paid=payload.is_paid,
        price=payload.price if payload.is_paid else None,
        images=list(payload.images),
        status=STATUS_DEFAULT,
        creator_id=creator_id,
        category_id=payload.category_id,
    )
    try:
        db.add(activity)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to create activity for user %s", creator_id)
        raise StorageError("Failed to create activity") from None

    logger.info("Activity %s created by %s", activity.id, creator_id)
    return get_activity(db, activity.id)


def update_status(db: Session, activity_id: str, user_id: str, target: str) -> Activity:
    """Creator-only status change, checked against the transition table."""
    activity = get_activity(db, activity_id)
    if activity.creator_id != user_id:
        raise ForbiddenError("Only the creator can change the status")

    message = check_status_transition(activity.status, target)
    if message is not None:
        raise ConflictError(message)

    try:
        activity.status = target
        activity.updated_at = utc_now()
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to update status of activity %s", activity_id)
        raise StorageError("Failed to update activity") from None

    logger.info("Activity %s status -> %s", activity_id, target)
    return get_activity(db, activity_id)
