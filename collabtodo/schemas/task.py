"""Pydantic schemas for task request/response validation."""

from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Optional, List

from collabtodo.schemas.label import LabelResponse
from collabtodo.schemas.comment import CommentResponse

# Schemas tâches

class TaskCreate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    project_id: Optional[int] = None
    section_id: Optional[int] = None
    due_date: Optional[datetime] = None
    priority: Optional[int] = None
    assign_to: Optional[str] = None
    completed: bool = False
    labels: Optional[List[int]] = None
    parent_task_id: Optional[int] = None
    task_order: Optional[int] = None
    above_task_id: Optional[int] = None
    below_task_id: Optional[int] = None

class TaskUpdate(BaseModel):
    """Mise à jour partielle : seuls les champs envoyés sont modifiés."""

    title: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    priority: Optional[int] = None
    assign_to: Optional[str] = None
    completed: Optional[bool] = None
    labels: Optional[List[int]] = None
    section_id: Optional[int] = None
    task_order: Optional[int] = None

class AssignRequest(BaseModel):
    assign_to: Optional[str] = None

class PriorityRequest(BaseModel):
    priority: Optional[int] = None

class DueDateRequest(BaseModel):
    due_date: Optional[datetime] = None

class MoveRequest(BaseModel):
    target_project_id: int
    target_section_id: Optional[int] = None

class TaskResponse(BaseModel):
    """Schema for task responses from API."""

    id: int
    title: str
    description: Optional[str]
    due_date: Optional[datetime]
    priority: Optional[int]
    project_id: int
    section_id: Optional[int]
    assign_to: Optional[str]
    completed: bool
    task_order: int
    parent_task_id: Optional[int]
    labels: List[LabelResponse] = []
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

class TaskDetail(TaskResponse):
    """Tâche avec ses commentaires et ses sous-tâches directes"""
    comments: List[CommentResponse] = []
    sub_tasks: List[TaskResponse] = []
