from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from activityhub.schemas.user import UserInfo


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=2000)
    parent_id: Optional[str] = None


class CommentUpdate(BaseModel):
    content: str = Field(..., min_length=1, max_length=2000)


class CommentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    content: str
    activity_id: str
    parent_id: Optional[str] = None
    user: UserInfo
    created_at: datetime
    updated_at: datetime
    replies: List["CommentOut"] = []
