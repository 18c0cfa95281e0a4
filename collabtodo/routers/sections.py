from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from collabtodo.core.database import get_db
from collabtodo.core.exceptions import NotFoundError
from collabtodo.models.user import User
from collabtodo.routers.deps import get_current_user
from collabtodo.schemas.section import SectionCreate, SectionUpdate, SectionResponse, SectionWithTasks
from collabtodo.services.section_service import SectionService

router = APIRouter(prefix="/projects/{project_id}/sections", tags=["sections"])


@router.post("", response_model=SectionResponse, status_code=status.HTTP_201_CREATED)
def create_section(project_id: int, data: SectionCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return SectionService(db).add(
        current_user.id, project_id, data.name,
        above_section_id=data.above_section_id,
        below_section_id=data.below_section_id
    )

@router.get("", response_model=List[SectionResponse])
def list_sections(project_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return SectionService(db).list(current_user.id, project_id)

@router.get("/{section_id}", response_model=SectionWithTasks)
def get_section(project_id: int, section_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    section = SectionService(db).get(current_user.id, project_id, section_id)
    if section is None:
        raise NotFoundError("Section")
    return section

@router.put("/{section_id}", response_model=SectionResponse)
def update_section(project_id: int, section_id: int, data: SectionUpdate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return SectionService(db).update(current_user.id, project_id, section_id, data)

@router.delete("/{section_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_section(project_id: int, section_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    SectionService(db).delete(current_user.id, project_id, section_id)

@router.post("/{section_id}/swap/{target_section_id}", response_model=List[SectionResponse])
def swap_sections(project_id: int, section_id: int, target_section_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return SectionService(db).swap_order(current_user.id, project_id, section_id, target_section_id)

# Déplace la section (et ses tâches) vers un autre projet
@router.post("/{section_id}/move/{target_project_id}", response_model=SectionResponse)
def move_section(project_id: int, section_id: int, target_project_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return SectionService(db).move(current_user.id, project_id, section_id, target_project_id)

@router.post("/{section_id}/duplicate", response_model=SectionWithTasks, status_code=status.HTTP_201_CREATED)
def duplicate_section(project_id: int, section_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return SectionService(db).duplicate(current_user.id, project_id, section_id)
