from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from collabtodo.core.database import get_db
from collabtodo.models.user import User
from collabtodo.routers.deps import get_current_user
from collabtodo.schemas.project import ProjectCreate, ProjectUpdate, ProjectResponse, ShareRequest
from collabtodo.schemas.user import CollaboratorResponse
from collabtodo.services.project_service import ProjectService

router = APIRouter(prefix="/projects", tags=["projects"])


# Crée un projet (le créateur en est owner)
@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
def create_project(data: ProjectCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    membership = ProjectService(db).create(current_user.id, data)
    return ProjectResponse.from_membership(membership)

@router.get("", response_model=List[ProjectResponse])
def list_projects(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    # Projets non archivés, dans l'ordre de l'user
    memberships = ProjectService(db).list_active(current_user.id)
    return [ProjectResponse.from_membership(m) for m in memberships]

@router.get("/archived", response_model=List[ProjectResponse])
def list_archived_projects(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    memberships = ProjectService(db).list_archived(current_user.id)
    return [ProjectResponse.from_membership(m) for m in memberships]

@router.get("/search/query", response_model=List[ProjectResponse], tags=["search"])
def search_projects(q: str, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    memberships = ProjectService(db).search(current_user.id, q)
    return [ProjectResponse.from_membership(m) for m in memberships]

@router.get("/{project_id}", response_model=ProjectResponse)
def get_project(project_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    membership = ProjectService(db).get(current_user.id, project_id)
    return ProjectResponse.from_membership(membership)

@router.put("/{project_id}", response_model=ProjectResponse)
def update_project(project_id: int, data: ProjectUpdate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    membership = ProjectService(db).update(current_user.id, project_id, data)
    return ProjectResponse.from_membership(membership)

@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_project(project_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    ProjectService(db).delete(current_user.id, project_id)

# Partage avec d'autres users
@router.post("/{project_id}/share", status_code=status.HTTP_204_NO_CONTENT)
def share_project(project_id: int, data: ShareRequest, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    ProjectService(db).share(current_user.id, project_id, data.users)

@router.post("/{project_id}/swap/{target_project_id}", response_model=List[ProjectResponse])
def swap_projects(project_id: int, target_project_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    memberships = ProjectService(db).swap_order(current_user.id, project_id, target_project_id)
    return [ProjectResponse.from_membership(m) for m in memberships]

@router.post("/{project_id}/favorite", status_code=status.HTTP_204_NO_CONTENT)
def add_favorite(project_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    ProjectService(db).add_favorite(current_user.id, project_id)

@router.delete("/{project_id}/favorite", status_code=status.HTTP_204_NO_CONTENT)
def remove_favorite(project_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    ProjectService(db).remove_favorite(current_user.id, project_id)

@router.post("/{project_id}/leave", status_code=status.HTTP_204_NO_CONTENT)
def leave_project(project_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    ProjectService(db).leave(current_user.id, project_id)

@router.post("/{project_id}/duplicate", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
def duplicate_project(project_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    membership = ProjectService(db).duplicate(current_user.id, project_id)
    return ProjectResponse.from_membership(membership)

@router.get("/{project_id}/collaborators", response_model=List[CollaboratorResponse])
def list_collaborators(project_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    rows = ProjectService(db).collaborators(current_user.id, project_id)
    return [
        CollaboratorResponse(
            id=user.id,
            display_name=user.display_name,
            email=user.email,
            photo=user.photo,
            created_at=user.created_at,
            owner=owner
        )
        for user, owner in rows
    ]
