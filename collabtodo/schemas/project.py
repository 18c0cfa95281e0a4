from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Optional, List

from collabtodo.models.project import ViewType

# Schemas projets

class ProjectCreate(BaseModel):
    # name et view sont obligatoires, vérifiés par le service avant toute écriture
    name: Optional[str] = None
    view: Optional[ViewType] = None
    archived: bool = False
    default_inbox: bool = False
    above_project_id: Optional[int] = None
    below_project_id: Optional[int] = None
    group_by: Optional[str] = None
    sort_by: Optional[str] = None
    filter_by: Optional[str] = None

class ProjectUpdate(BaseModel):
    name: Optional[str] = None
    archived: Optional[bool] = None
    view: Optional[ViewType] = None
    group_by: Optional[str] = None
    sort_by: Optional[str] = None
    filter_by: Optional[str] = None

class ShareRequest(BaseModel):
    users: List[str]

class MembershipProps(BaseModel):
    owner: bool
    order: int
    favorite: bool

    model_config = ConfigDict(from_attributes=True)

class ProjectResponse(BaseModel):
    id: int
    name: str
    view: ViewType
    archived: bool
    default_inbox: bool
    group_by: Optional[str]
    sort_by: Optional[str]
    filter_by: Optional[str]
    created_at: datetime
    updated_at: datetime
    props: MembershipProps

    @classmethod
    def from_membership(cls, membership) -> "ProjectResponse":
        """Projet vu par un user : ses infos + les props de SA membership"""
        project = membership.project
        return cls(
            id=project.id,
            name=project.name,
            view=project.view,
            archived=project.archived,
            default_inbox=project.default_inbox,
            group_by=project.group_by,
            sort_by=project.sort_by,
            filter_by=project.filter_by,
            created_at=project.created_at,
            updated_at=project.updated_at,
            props=MembershipProps.model_validate(membership),
        )
