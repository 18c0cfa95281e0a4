from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from collabtodo.core.database import get_db
from collabtodo.models.user import User
from collabtodo.routers.deps import get_current_user
from collabtodo.schemas.user import UserResponse
from collabtodo.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=List[UserResponse])
def list_users(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return UserService(db).list_all()

@router.get("/search", response_model=List[UserResponse])
def search_users(q: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    # Pour retrouver avec qui partager un projet
    return UserService(db).search(q)

@router.get("/me", response_model=UserResponse)
def get_me(current_user: User = Depends(get_current_user)):
    return current_user
