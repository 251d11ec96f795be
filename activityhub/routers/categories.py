# Category API
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from activityhub.crud.category_crud import category_tree, create_category, get_category, list_categories
from activityhub.database import get_db
from activityhub.models.user import User
from activityhub.schemas.category import CategoryCreate, CategoryOut, CategoryTreeNode
from activityhub.security import get_current_user

router = APIRouter(prefix="/categories", tags=["Categories"])


@router.get("", response_model=List[CategoryOut])
def get_categories(db: Session = Depends(get_db)) -> List[CategoryOut]:
    return list_categories(db)


@router.get("/roots", response_model=List[CategoryOut])
def get_root_categories(db: Session = Depends(get_db)) -> List[CategoryOut]:
    return list_categories(db, roots_only=True)


@router.get("/tree", response_model=List[CategoryTreeNode])
def get_category_tree(db: Session = Depends(get_db)) -> List[CategoryTreeNode]:
    return category_tree(db)


@router.get("/{category_id}", response_model=CategoryOut)
def get_category_detail(category_id: str, db: Session = Depends(get_db)) -> CategoryOut:
    return get_category(db, category_id)


@router.post("", response_model=CategoryOut, status_code=201)
def post_category(
    body: CategoryCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> CategoryOut:
    return create_category(db, body)
