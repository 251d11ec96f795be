# Activity API: listing, creation, detail, join/leave, status
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from activityhub.crud.activity_crud import create_activity, get_activity, list_activities, update_status
from activityhub.database import get_db
from activityhub.models.activity import Activity
from activityhub.models.base import utc_now
from activityhub.models.user import User
from activityhub.schemas.activity import (
    ActivityCreate,
    ActivityDetail,
    ActivityPage,
    ActivityQuery,
    StatusUpdateBody,
)
from activityhub.security import get_current_user, get_current_user_optional
from activityhub.services.activity_status import derive_status
from activityhub.services.participation import join_activity, leave_activity

router = APIRouter(prefix="/activities", tags=["Activities"])


def _activity_to_detail(activity: Activity, viewer: Optional[User] = None) -> ActivityDetail:
    detail = ActivityDetail.model_validate(activity)
    detail.time_status = derive_status(activity.start_date, activity.end_date, utc_now())
    if viewer is not None:
        detail.is_participating = any(p.user_id == viewer.id for p in activity.participants)
    return detail


@router.get("", response_model=ActivityPage)
def get_activities(
    page: Optional[int] = Query(None, description="1-based page number"),
    limit: Optional[int] = Query(None, description="page size, capped at 50"),
    search: Optional[str] = Query(None, description="matches title, description or location"),
    category: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    creator_id: Optional[str] = Query(None),
    participant_id: Optional[str] = Query(None),
    date: Optional[str] = Query(None, description="today | tomorrow | week | month"),
    order_by: Optional[str] = Query(None, description="start_date | created_at | title"),
    order_direction: Optional[str] = Query(None, description="asc | desc"),
    db: Session = Depends(get_db),
) -> ActivityPage:
    """Filtered, sorted, paginated activity list. Invalid parameters -> 400 with per-field details."""
    query = ActivityQuery.parse(
        page=page,
        limit=limit,
        search=search,
        category=category,
        status=status,
        creator_id=creator_id,
        participant_id=participant_id,
        date=date,
        order_by=order_by,
        order_direction=order_direction,
    )
    return list_activities(db, query)


@router.post("", response_model=ActivityDetail, status_code=201)
def post_activity(
    body: ActivityCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ActivityDetail:
    activity = create_activity(db, body, current_user.id)
    return _activity_to_detail(activity, current_user)


@router.get("/{activity_id}", response_model=ActivityDetail)
def get_activity_detail(
    activity_id: str,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_user_optional),
) -> ActivityDetail:
    return _activity_to_detail(get_activity(db, activity_id), current_user)


@router.post("/{activity_id}/join", response_model=ActivityDetail)
def post_join(
    activity_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ActivityDetail:
    """Join as the current user. 404 unknown activity, 409 already participating / full."""
    activity = join_activity(db, activity_id, current_user.id)
    return _activity_to_detail(activity, current_user)


@router.delete("/{activity_id}/leave", response_model=ActivityDetail)
def delete_leave(
    activity_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ActivityDetail:
    activity = leave_activity(db, activity_id, current_user.id)
    return _activity_to_detail(activity, current_user)


@router.patch("/{activity_id}/status", response_model=ActivityDetail)
def patch_status(
    activity_id: str,
    body: StatusUpdateBody,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ActivityDetail:
    """Creator-only status change (upcoming -> ongoing -> completed, or cancelled)."""
    activity = update_status(db, activity_id, current_user.id, body.status)
    return _activity_to_detail(activity, current_user)
