# Comment CRUD. Only the author may edit or delete a comment.

import logging
from collections import defaultdict
from typing import Dict, List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from activityhub.errors import ForbiddenError, NotFoundError, StorageError, ValidationError
from activityhub.models.activity import Activity
from activityhub.models.base import utc_now
from activityhub.models.comment import Comment
from activityhub.schemas.comment import CommentCreate, CommentOut
from activityhub.schemas.user import UserInfo

logger = logging.getLogger(__name__)


def _to_out(comment: Comment) -> CommentOut:
    # Built field by field: model_validate would walk the lazy ``replies`` relationship.
    return CommentOut(
        id=comment.id,
        content=comment.content,
        activity_id=comment.activity_id,
        parent_id=comment.parent_id,
        user=UserInfo.model_validate(comment.user),
        created_at=comment.created_at,
        updated_at=comment.updated_at,
    )


def _get_owned_comment(db: Session, activity_id: str, comment_id: str, user_id: str) -> Comment:
    comment = db.get(Comment, comment_id)
    if comment is None or comment.activity_id != activity_id:
        raise NotFoundError("Comment not found")
    if comment.user_id != user_id:
        raise ForbiddenError("Only the author can modify this comment")
    return comment


def list_comments(db: Session, activity_id: str) -> List[CommentOut]:
    """
    Comment tree for an activity.

    One flat query, then children grouped under their parent in memory.
    Top-level comments newest first, replies oldest first.
    """
    if db.get(Activity, activity_id) is None:
        raise NotFoundError("Activity not found")

    try:
        comments = (
            db.execute(
                select(Comment)
                .where(Comment.activity_id == activity_id)
                .order_by(Comment.created_at.asc(), Comment.id.asc())
            )
            .scalars()
            .all()
        )
    except SQLAlchemyError:
        logger.exception("Failed to list comments for activity %s", activity_id)
        raise StorageError("Failed to fetch comments") from None

    nodes: Dict[str, CommentOut] = {c.id: _to_out(c) for c in comments}
    children: Dict[str, List[CommentOut]] = defaultdict(list)
    top_level: List[CommentOut] = []
    for c in comments:
        if c.parent_id and c.parent_id in nodes:
            children[c.parent_id].append(nodes[c.id])
        else:
            top_level.append(nodes[c.id])

    for comment_id, node in nodes.items():
        node.replies = children.get(comment_id, [])

    top_level.reverse()
    return top_level


def create_comment(db: Session, activity_id: str, payload: CommentCreate, user_id: str) -> CommentOut:
    """Add a comment, or a reply when parent_id is given (parent must be on the same activity)."""
    if db.get(Activity, activity_id) is None:
        raise NotFoundError("Activity not found")

    if payload.parent_id:
        parent = db.get(Comment, payload.parent_id)
        if parent is None:
            raise NotFoundError("Parent comment not found")
        if parent.activity_id != activity_id:
            raise ValidationError(
                "Invalid parent comment",
                [{"path": "parent_id", "message": "Parent comment belongs to another activity"}],
            )

    comment = Comment(
        content=payload.content.strip(),
        user_id=user_id,
        activity_id=activity_id,
        parent_id=payload.parent_id or None,
    )
    try:
        db.add(comment)
        db.commit()
        db.refresh(comment)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to create comment on activity %s", activity_id)
        raise StorageError("Failed to create comment") from None

    return _to_out(comment)


def update_comment(db: Session, activity_id: str, comment_id: str, content: str, user_id: str) -> CommentOut:
    comment = _get_owned_comment(db, activity_id, comment_id, user_id)
    try:
        comment.content = content.strip()
        comment.updated_at = utc_now()
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to update comment %s", comment_id)
        raise StorageError("Failed to update comment") from None
    return _to_out(comment)


def delete_comment(db: Session, activity_id: str, comment_id: str, user_id: str) -> None:
    """Delete a comment and, through the replies cascade, everything under it."""
    comment = _get_owned_comment(db, activity_id, comment_id, user_id)
    try:
        db.delete(comment)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to delete comment %s", comment_id)
        raise StorageError("Failed to delete comment") from None
    logger.info("Comment %s deleted by %s", comment_id, user_id)
