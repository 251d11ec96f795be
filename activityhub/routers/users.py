from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from activityhub.crud.user_crud import get_profile, update_profile
from activityhub.database import get_db
from activityhub.models.user import User
from activityhub.schemas.profile import ProfileOut
from activityhub.schemas.user import ProfileUpdate
from activityhub.security import get_current_user

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/profile", response_model=ProfileOut)
def get_my_profile(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)) -> ProfileOut:
    return get_profile(db, current_user)


@router.put("/profile", response_model=ProfileOut)
def put_my_profile(
    body: ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ProfileOut:
    return update_profile(db, current_user, body)
