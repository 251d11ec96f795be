# GET /users/profile response

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from activityhub.schemas.activity import ActivitySummary


class ParticipationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    status: str
    joined_at: datetime
    activity: ActivitySummary


class ProfileOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: Optional[str] = None
    image: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    interests: List[str] = []
    is_new_user: bool = False
    created_activities: List[ActivitySummary] = []
    participations: List[ParticipationOut] = []
