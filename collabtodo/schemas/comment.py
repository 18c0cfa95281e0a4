from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional, Union, Literal, Annotated


class ProjectTarget(BaseModel):
    kind: Literal["project"] = "project"
    id: int

class TaskTarget(BaseModel):
    kind: Literal["task"] = "task"
    id: int

# Un commentaire est attaché à un projet OU à une tâche, jamais les deux
CommentTarget = Annotated[Union[ProjectTarget, TaskTarget], Field(discriminator="kind")]


class CommentCreate(BaseModel):
    text: str

class CommentResponse(BaseModel):
    id: int
    text: str
    author_id: str
    comment_date: datetime
    project_id: Optional[int]
    task_id: Optional[int]

    model_config = ConfigDict(from_attributes=True)
