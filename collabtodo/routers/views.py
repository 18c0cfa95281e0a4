from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from collabtodo.core.database import get_db
from collabtodo.models.user import User
from collabtodo.routers.deps import get_current_user
from collabtodo.schemas.search import SearchResultResponse
from collabtodo.schemas.task import TaskResponse
from collabtodo.services.search_service import full_text_search
from collabtodo.services.task_service import TaskService

router = APIRouter(tags=["views"])


# Aujourd'hui + en retard, tous projets confondus
@router.get("/view/today", response_model=List[TaskResponse])
def today_tasks(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return TaskService(db).today(current_user.id)

@router.get("/view/upcoming", response_model=List[TaskResponse])
def upcoming_tasks(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return TaskService(db).upcoming(current_user.id)

@router.get("/search", response_model=List[SearchResultResponse], tags=["search"])
def search(q: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    results = full_text_search(db, current_user.id, q)
    return [SearchResultResponse.model_validate(r) for r in results]
