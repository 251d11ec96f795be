# User request/response schemas

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class UserInfo(BaseModel):
    """Minimal user info for display (creator, commenter, participant)."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: Optional[str] = None
    image: Optional[str] = None


class ProfileUpdate(BaseModel):
    bio: Optional[str] = Field(default=None, max_length=1000)
    location: Optional[str] = Field(default=None, max_length=200)
    interests: List[str] = Field(default_factory=list, max_length=20)
