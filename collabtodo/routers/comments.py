from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from collabtodo.core.database import get_db
from collabtodo.models.user import User
from collabtodo.routers.deps import get_current_user
from collabtodo.schemas.comment import CommentCreate, CommentResponse, ProjectTarget, TaskTarget
from collabtodo.services.comment_service import CommentService

router = APIRouter(tags=["comments"])


# Commentaires d'un projet
@router.get("/projects/{project_id}/comments", response_model=List[CommentResponse])
def list_project_comments(project_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return CommentService(db).list(current_user.id, ProjectTarget(id=project_id))

@router.post("/projects/{project_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
def add_project_comment(project_id: int, data: CommentCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return CommentService(db).add(current_user.id, ProjectTarget(id=project_id), data.text)

@router.delete("/projects/{project_id}/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_project_comment(project_id: int, comment_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    CommentService(db).remove(current_user.id, ProjectTarget(id=project_id), comment_id)

# Commentaires d'une tâche
@router.get("/tasks/{task_id}/comments", response_model=List[CommentResponse])
def list_task_comments(task_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return CommentService(db).list(current_user.id, TaskTarget(id=task_id))

@router.post("/tasks/{task_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
def add_task_comment(task_id: int, data: CommentCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return CommentService(db).add(current_user.id, TaskTarget(id=task_id), data.text)

@router.delete("/tasks/{task_id}/comments/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_task_comment(task_id: int, comment_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    CommentService(db).remove(current_user.id, TaskTarget(id=task_id), comment_id)
