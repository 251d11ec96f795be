# Comment API (nested under an activity)
from typing import List

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from activityhub.crud.comment_crud import create_comment, delete_comment, list_comments, update_comment
from activityhub.database import get_db
from activityhub.models.user import User
from activityhub.schemas.comment import CommentCreate, CommentOut, CommentUpdate
from activityhub.security import get_current_user

router = APIRouter(prefix="/activities/{activity_id}/comments", tags=["Comments"])


@router.get("", response_model=List[CommentOut])
def get_comments(activity_id: str, db: Session = Depends(get_db)) -> List[CommentOut]:
    """Top-level comments (newest first), each with its replies."""
    return list_comments(db, activity_id)


@router.post("", response_model=CommentOut, status_code=201)
def post_comment(
    activity_id: str,
    body: CommentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> CommentOut:
    return create_comment(db, activity_id, body, current_user.id)


@router.patch("/{comment_id}", response_model=CommentOut)
def patch_comment(
    activity_id: str,
    comment_id: str,
    body: CommentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> CommentOut:
    return update_comment(db, activity_id, comment_id, body.content, current_user.id)


@router.delete("/{comment_id}", status_code=204)
def remove_comment(
    activity_id: str,
    comment_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Response:
    delete_comment(db, activity_id, comment_id, current_user.id)
    return Response(status_code=204)
