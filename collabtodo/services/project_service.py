"""
Service projets - cycle de vie, partage, ordre par user, duplication
"""

import logging
from typing import List, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from collabtodo.core.database import atomic
from collabtodo.core.exceptions import NotFoundError, InvariantViolation, StoreValidationError
from collabtodo.models.user import User
from collabtodo.models.project import Project
from collabtodo.models.membership import Membership
from collabtodo.models.section import Section
from collabtodo.models.task import Task
from collabtodo.models.comment import Comment
from collabtodo.schemas.project import ProjectCreate, ProjectUpdate
from collabtodo.services.guard import CollaboratorGuard
from collabtodo.services.ordering import project_scope
from collabtodo.services.task_service import clone_task, copy_labels, copy_sub_task_edges, purge_tasks

logger = logging.getLogger(__name__)


class ProjectService:

    def __init__(self, db: Session):
        self.db = db
        self.guard = CollaboratorGuard(db)

    # ============ LECTURE ============

    def get(self, user_id: str, project_id: int) -> Membership:
        """Projet + props de l'user. Pas membre = introuvable."""
        return self.guard.require_collaborator(user_id, project_id)

    def _list(self, user_id: str, archived: bool) -> List[Membership]:
        return self.db.query(Membership).join(
            Project, Project.id == Membership.project_id
        ).filter(
            Membership.user_id == user_id,
            Project.archived == archived
        ).order_by(Membership.order).all()

    def list_active(self, user_id: str) -> List[Membership]:
        return self._list(user_id, archived=False)

    def list_archived(self, user_id: str) -> List[Membership]:
        return self._list(user_id, archived=True)

    def collaborators(self, user_id: str, project_id: int) -> List[Tuple[User, bool]]:
        self.guard.require_collaborator(user_id, project_id)
        rows = self.db.query(User, Membership.owner).join(
            Membership, Membership.user_id == User.id
        ).filter(
            Membership.project_id == project_id
        ).order_by(User.display_name).all()
        return [(user, owner) for user, owner in rows]

    def search(self, user_id: str, text: str) -> List[Membership]:
        return self.db.query(Membership).join(
            Project, Project.id == Membership.project_id
        ).filter(
            Membership.user_id == user_id,
            Project.name.ilike(f"%{text}%")
        ).order_by(Membership.order).all()

    def inbox(self, user_id: str):
        return self.db.query(Membership).join(
            Project, Project.id == Membership.project_id
        ).filter(
            Membership.user_id == user_id,
            Project.default_inbox == True
        ).first()

    # ============ CRÉATION ============

    def create(self, user_id: str, data: ProjectCreate) -> Membership:
        """
        Crée le projet puis la membership (owner) de son créateur.

        L'ordre de la membership est calculé dans la liste de projets de l'user :
        au-dessus / en dessous d'un projet donné, sinon à la fin.
        """
        if not data.name or not data.name.strip():
            raise StoreValidationError("name is required.")
        if data.view is None:
            raise StoreValidationError("view is required.")
        if data.above_project_id is not None and data.below_project_id is not None:
            raise StoreValidationError("Only one of above/below can be given")

        with atomic(self.db):
            if data.default_inbox and self.inbox(user_id) is not None:
                raise InvariantViolation("User already has a default inbox")

            project = Project(
                name=data.name.strip(),
                view=data.view,
                archived=data.archived,
                default_inbox=data.default_inbox,
                group_by=data.group_by,
                sort_by=data.sort_by,
                filter_by=data.filter_by
            )
            self.db.add(project)
            self.db.flush()

            order = project_scope(self.db, user_id).place(
                above=data.above_project_id,
                below=data.below_project_id
            )
            membership = Membership(
                user_id=user_id,
                project_id=project.id,
                owner=True,
                favorite=False,
                order=order
            )
            self.db.add(membership)
            self.db.flush()

        logger.info(f"Project {project.id} created by {user_id}")
        return membership

    # ============ MODIFICATION ============

    def update(self, user_id: str, project_id: int, data: ProjectUpdate) -> Membership:
        membership = self.guard.require_collaborator(user_id, project_id)
        project = membership.project
        fields = data.model_dump(exclude_unset=True)

        if "name" in fields and (fields["name"] is None or not fields["name"].strip()):
            raise StoreValidationError("name cannot be empty.")
        if fields.get("archived") and project.default_inbox:
            raise InvariantViolation("Default Inbox cannot be archived")

        with atomic(self.db):
            for field in ("archived", "view"):
                if fields.get(field) is not None:
                    setattr(project, field, fields[field])
            for field in ("group_by", "sort_by", "filter_by"):
                if field in fields:
                    setattr(project, field, fields[field])
            if "name" in fields:
                project.name = fields["name"].strip()

        return membership

    def swap_order(self, user_id: str, project_id: int, target_project_id: int) -> List[Membership]:
        with atomic(self.db):
            source, target = project_scope(self.db, user_id).swap(project_id, target_project_id)
        return [source, target]

    def add_favorite(self, user_id: str, project_id: int):
        membership = self.guard.require_collaborator(user_id, project_id)
        with atomic(self.db):
            membership.favorite = True

    def remove_favorite(self, user_id: str, project_id: int):
        membership = self.guard.require_collaborator(user_id, project_id)
        with atomic(self.db):
            membership.favorite = False

    # ============ PARTAGE ============

    def share(self, user_id: str, project_id: int, target_user_ids: List[str]):
        """
        Ajoute des collaborateurs. Un user déjà membre est ignoré (idempotent).

        Chaque nouveau membre reçoit le projet à la fin de SA propre liste.
        """
        self.guard.require_collaborator(user_id, project_id)

        # ordre stable des verrous sur les lignes User
        targets = sorted(set(target_user_ids))
        known = {u.id for u in self.db.query(User).filter(User.id.in_(targets)).all()}
        if any(t not in known for t in targets):
            raise NotFoundError("User")

        with atomic(self.db):
            for target in targets:
                if self.guard.is_collaborator(target, project_id):
                    continue
                order = project_scope(self.db, target).append()
                self.db.add(Membership(
                    user_id=target,
                    project_id=project_id,
                    owner=False,
                    favorite=False,
                    order=order
                ))
                self.db.flush()
                logger.info(f"Project {project_id} shared with {target} by {user_id}")

    def leave(self, user_id: str, project_id: int):
        membership = self.guard.require_collaborator(user_id, project_id)
        if membership.project.default_inbox:
            raise InvariantViolation("You cannot leave your default Inbox")

        count = self.db.query(func.count(Membership.user_id)).filter(
            Membership.project_id == project_id
        ).scalar()
        if count < 2:
            raise InvariantViolation("You cannot leave the project without other collaborators")

        with atomic(self.db):
            order = membership.order
            was_owner = membership.owner
            self.db.delete(membership)
            self.db.flush()
            project_scope(self.db, user_id).remove(order)

            # les tâches qui lui étaient assignées ne le sont plus
            self.db.query(Task).filter(
                Task.project_id == project_id,
                Task.assign_to == user_id
            ).update({Task.assign_to: None}, synchronize_session="fetch")

            # le projet doit garder un owner, sinon personne ne pourrait le supprimer
            if was_owner:
                remaining_owner = self.db.query(Membership).filter(
                    Membership.project_id == project_id,
                    Membership.owner == True
                ).first()
                if remaining_owner is None:
                    heir = self.db.query(Membership).filter(
                        Membership.project_id == project_id
                    ).order_by(Membership.user_id).first()
                    heir.owner = True

        logger.info(f"User {user_id} left project {project_id}")

    # ============ SUPPRESSION ============

    def delete(self, user_id: str, project_id: int):
        membership = self.guard.require_collaborator(user_id, project_id)
        if membership.project.default_inbox:
            raise InvariantViolation("Default Inbox cannot be deleted")
        self.guard.require_owner(user_id, project_id)

        with atomic(self.db):
            members = [(m.user_id, m.order) for m in self.db.query(Membership).filter(
                Membership.project_id == project_id
            ).all()]

            task_ids = [t.id for t in self.db.query(Task.id).filter(Task.project_id == project_id).all()]
            purge_tasks(self.db, task_ids)
            self.db.query(Section).filter(Section.project_id == project_id).delete(synchronize_session=False)

            self.db.query(Comment).filter(Comment.project_id == project_id).delete(synchronize_session=False)
            self.db.query(Membership).filter(Membership.project_id == project_id).delete(synchronize_session=False)
            self.db.query(Project).filter(Project.id == project_id).delete(synchronize_session=False)

            for member_id, order in members:
                project_scope(self.db, member_id).remove(order)

        logger.info(f"Project {project_id} deleted by {user_id}")

    # ============ DUPLICATION ============

    def duplicate(self, user_id: str, project_id: int) -> Membership:
        """
        Copie profonde : projet -> sections -> tâches -> arêtes sous-tâches.

        Les ids des tâches copiées sont remappés (ancien -> nouveau) pendant la copie,
        puis les arêtes parent/enfant sont recréées en une fois à partir de ce mapping.
        """
        source = self.guard.require_collaborator(user_id, project_id).project

        with atomic(self.db):
            copy = self.create(user_id, ProjectCreate(
                name=f"Copy of {source.name}",
                view=source.view,
                archived=source.archived,
                default_inbox=False,
                group_by=source.group_by,
                sort_by=source.sort_by,
                filter_by=source.filter_by
            ))
            new_project_id = copy.project_id

            section_map = {}
            sections = self.db.query(Section).filter(
                Section.project_id == project_id
            ).order_by(Section.order).all()
            for section in sections:
                new_section = Section(
                    name=section.name,
                    project_id=new_project_id,
                    order=section.order,
                    open=section.open
                )
                self.db.add(new_section)
                self.db.flush()
                section_map[section.id] = new_section.id

            task_map = {}
            tasks = self.db.query(Task).filter(Task.project_id == project_id).order_by(Task.id).all()
            for task in tasks:
                new_task = clone_task(
                    self.db, task,
                    project_id=new_project_id,
                    section_id=section_map.get(task.section_id),
                    # la copie n'a qu'un collaborateur : l'user qui duplique
                    assign_to=task.assign_to if task.assign_to == user_id else None
                )
                task_map[task.id] = new_task.id

            copy_labels(self.db, task_map)
            copy_sub_task_edges(self.db, task_map)

        logger.info(f"Project {project_id} duplicated into {new_project_id} ({len(task_map)} tasks)")
        return copy
