from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from collabtodo.core.database import get_db
from collabtodo.models.user import User
from collabtodo.routers.deps import get_current_user
from collabtodo.schemas.label import LabelCreate, LabelResponse
from collabtodo.schemas.task import TaskResponse
from collabtodo.services.label_service import LabelService
from collabtodo.services.task_service import TaskService

router = APIRouter(prefix="/labels", tags=["labels"])


@router.post("", response_model=LabelResponse, status_code=status.HTTP_201_CREATED)
def create_label(data: LabelCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return LabelService(db).create(current_user.id, data.title)

@router.get("", response_model=List[LabelResponse])
def list_labels(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return LabelService(db).list(current_user.id)

@router.get("/search/query", response_model=List[LabelResponse], tags=["search"])
def search_labels(q: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return LabelService(db).search(current_user.id, q)

@router.put("/{label_id}", response_model=LabelResponse)
def rename_label(label_id: int, data: LabelCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return LabelService(db).rename(current_user.id, label_id, data.title)

@router.delete("/{label_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_label(label_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    LabelService(db).delete(current_user.id, label_id)

@router.post("/{label_id}/swap/{target_label_id}", response_model=List[LabelResponse])
def swap_labels(label_id: int, target_label_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return LabelService(db).swap_order(current_user.id, label_id, target_label_id)

# Tâches visibles portant ce label
@router.get("/{label_id}/tasks", response_model=List[TaskResponse])
def label_tasks(label_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return TaskService(db).label_tasks(current_user.id, label_id)
