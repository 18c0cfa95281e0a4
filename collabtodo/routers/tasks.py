from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from collabtodo.core.database import get_db
from collabtodo.core.exceptions import NotFoundError
from collabtodo.models.user import User
from collabtodo.routers.deps import get_current_user
from collabtodo.schemas.task import (
    TaskCreate,
    TaskUpdate,
    TaskResponse,
    TaskDetail,
    AssignRequest,
    PriorityRequest,
    DueDateRequest,
    MoveRequest,
)
from collabtodo.services.task_service import TaskService

router = APIRouter(tags=["tasks"])


# ============ PAR PROJET ============

@router.get("/projects/{project_id}/tasks", response_model=List[TaskResponse])
def list_tasks(project_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return TaskService(db).list(current_user.id, project_id)

@router.post("/projects/{project_id}/tasks", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(project_id: int, data: TaskCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    data.project_id = project_id
    return TaskService(db).create(current_user.id, data)

# Déplace toutes les tâches du projet
@router.post("/projects/{project_id}/tasks/move", status_code=status.HTTP_204_NO_CONTENT)
def move_project_tasks(project_id: int, data: MoveRequest, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    TaskService(db).move(current_user.id, project_id, data.target_project_id, data.target_section_id)


# ============ PAR TÂCHE ============

@router.get("/tasks/{task_id}", response_model=TaskDetail)
def get_task(task_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    task = TaskService(db).get(current_user.id, task_id)
    if task is None:
        raise NotFoundError("Task")
    return task

@router.put("/tasks/{task_id}", response_model=TaskResponse)
def update_task(task_id: int, data: TaskUpdate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return TaskService(db).update(current_user.id, task_id, data)

@router.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(task_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    TaskService(db).delete(current_user.id, task_id)

@router.post("/tasks/{task_id}/swap/{target_task_id}", response_model=List[TaskResponse])
def swap_tasks(task_id: int, target_task_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return TaskService(db).swap_order(current_user.id, task_id, target_task_id)

@router.post("/tasks/{task_id}/duplicate", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def duplicate_task(task_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return TaskService(db).duplicate(current_user.id, task_id)

@router.post("/tasks/{task_id}/move", response_model=TaskResponse)
def move_task(task_id: int, data: MoveRequest, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return TaskService(db).move_task(current_user.id, task_id, data.target_project_id, data.target_section_id)

@router.put("/tasks/{task_id}/assign", response_model=TaskResponse)
def assign_task(task_id: int, data: AssignRequest, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return TaskService(db).assign(current_user.id, task_id, data.assign_to)

@router.put("/tasks/{task_id}/priority", response_model=TaskResponse)
def set_priority(task_id: int, data: PriorityRequest, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return TaskService(db).set_priority(current_user.id, task_id, data.priority)

@router.put("/tasks/{task_id}/due-date", response_model=TaskResponse)
def set_due_date(task_id: int, data: DueDateRequest, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return TaskService(db).set_due_date(current_user.id, task_id, data.due_date)

@router.post("/tasks/{task_id}/complete", response_model=TaskResponse)
def complete_task(task_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return TaskService(db).complete(current_user.id, task_id)

@router.post("/tasks/{task_id}/reopen", response_model=TaskResponse)
def reopen_task(task_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return TaskService(db).reopen(current_user.id, task_id)
