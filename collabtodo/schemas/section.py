from pydantic import BaseModel, ConfigDict
from typing import Optional, List

from collabtodo.schemas.task import TaskResponse

class SectionCreate(BaseModel):
    """Créer une section (optionnellement au-dessus / en dessous d'une autre)"""
    name: Optional[str] = None
    above_section_id: Optional[int] = None
    below_section_id: Optional[int] = None

class SectionUpdate(BaseModel):
    """Modifier une section. Un project_id différent = déplacement vers ce projet."""
    name: Optional[str] = None
    order: Optional[int] = None
    project_id: Optional[int] = None
    open: Optional[bool] = None

class SectionResponse(BaseModel):
    id: int
    name: str
    project_id: int
    order: int
    open: bool

    model_config = ConfigDict(from_attributes=True)

class SectionWithTasks(SectionResponse):
    tasks: List[TaskResponse] = []
