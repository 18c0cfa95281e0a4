"""
Vérification collaborateur.

Toute mutation sur un projet / une section / une tâche passe d'abord ici.
Projet inexistant et user non collaborateur donnent exactement la même erreur,
pour ne pas révéler l'existence d'un projet à un non-membre.
"""

from typing import Optional

from sqlalchemy.orm import Session

from collabtodo.core.exceptions import NotFoundError, InvariantViolation
from collabtodo.models.membership import Membership
from collabtodo.models.section import Section
from collabtodo.models.task import Task


class CollaboratorGuard:

    def __init__(self, db: Session):
        self.db = db

    def membership(self, user_id: str, project_id: int) -> Optional[Membership]:
        return self.db.query(Membership).filter(
            Membership.user_id == user_id,
            Membership.project_id == project_id
        ).first()

    def is_collaborator(self, user_id: str, project_id: int) -> bool:
        return self.membership(user_id, project_id) is not None

    def require_collaborator(self, user_id: str, project_id: int, entity: str = "Project") -> Membership:
        membership = self.membership(user_id, project_id)
        if membership is None:
            raise NotFoundError(entity)
        return membership

    def require_owner(self, user_id: str, project_id: int) -> Membership:
        membership = self.require_collaborator(user_id, project_id)
        if not membership.owner:
            raise InvariantViolation("Only the project owner can do this")
        return membership

    def require_section(self, user_id: str, project_id: int, section_id: int) -> Section:
        # projet inaccessible => "Section not found", comme une section inexistante
        self.require_collaborator(user_id, project_id, entity="Section")
        section = self.db.query(Section).filter(
            Section.id == section_id,
            Section.project_id == project_id
        ).first()
        if section is None:
            raise NotFoundError("Section")
        return section

    def find_task(self, user_id: str, task_id: int) -> Optional[Task]:
        return self.db.query(Task).join(
            Membership, Membership.project_id == Task.project_id
        ).filter(
            Task.id == task_id,
            Membership.user_id == user_id
        ).first()

    def require_task(self, user_id: str, task_id: int) -> Task:
        task = self.find_task(user_id, task_id)
        if task is None:
            raise NotFoundError("Task")
        return task
