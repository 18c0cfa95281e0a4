"""
Service sections - colonnes / groupes ordonnés dans un projet
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from collabtodo.core.database import atomic
from collabtodo.core.exceptions import StoreError, StoreValidationError
from collabtodo.models.section import Section
from collabtodo.models.task import Task, SubTask
from collabtodo.schemas.section import SectionUpdate
from collabtodo.services.guard import CollaboratorGuard
from collabtodo.services.ordering import section_scope, task_scope
from collabtodo.services.task_service import (
    clone_task,
    copy_labels,
    detach_foreign_edges,
    drop_foreign_assignees,
)

logger = logging.getLogger(__name__)


class SectionService:

    def __init__(self, db: Session):
        self.db = db
        self.guard = CollaboratorGuard(db)

    def _tasks_of(self, section_id: int) -> List[Task]:
        return self.db.query(Task).filter(Task.section_id == section_id).order_by(Task.task_order).all()

    # ============ LECTURE ============

    def list(self, user_id: str, project_id: int) -> List[Section]:
        """Sections du projet, [] si le projet n'est pas accessible"""
        if not self.guard.is_collaborator(user_id, project_id):
            return []
        return section_scope(self.db, project_id).items()

    def get(self, user_id: str, project_id: int, section_id: int) -> Optional[Section]:
        try:
            return self.guard.require_section(user_id, project_id, section_id)
        except StoreError:
            return None

    # ============ CRÉATION / MODIFICATION ============

    def add(self, user_id: str, project_id: int, name: Optional[str],
            above_section_id: Optional[int] = None, below_section_id: Optional[int] = None) -> Section:
        if not name or not name.strip():
            raise StoreValidationError("name is required.")
        self.guard.require_collaborator(user_id, project_id)

        with atomic(self.db):
            order = section_scope(self.db, project_id).place(above=above_section_id, below=below_section_id)
            section = Section(name=name.strip(), project_id=project_id, order=order, open=True)
            self.db.add(section)
            self.db.flush()

        logger.info(f"Section {section.id} added to project {project_id} by {user_id}")
        return section

    def update(self, user_id: str, project_id: int, section_id: int, data: SectionUpdate) -> Section:
        """
        Mise à jour partielle d'une section.

        order      -> repositionne dans le projet (les autres sections glissent)
        project_id -> déplace la section et ses tâches vers un autre projet
        """
        section = self.guard.require_section(user_id, project_id, section_id)
        fields = data.model_dump(exclude_unset=True)

        if fields.get("name") is not None and not fields["name"].strip():
            raise StoreValidationError("name cannot be empty.")
        target_project_id = fields.get("project_id")
        if target_project_id is not None and target_project_id != project_id:
            self.guard.require_collaborator(user_id, target_project_id)

        with atomic(self.db):
            if fields.get("name") is not None:
                section.name = fields["name"].strip()
            if fields.get("open") is not None:
                section.open = fields["open"]

            if target_project_id is not None and target_project_id != project_id:
                self._transfer(section, target_project_id)
            elif fields.get("order") is not None:
                section_scope(self.db, project_id).move_to(section.id, fields["order"])

        return section

    def _transfer(self, section: Section, target_project_id: int):
        """Section + tâches vers un autre projet : fin du projet cible, trou refermé dans la source"""
        source_project_id = section.project_id
        old_order = section.order

        new_order = section_scope(self.db, target_project_id).append()
        section.project_id = target_project_id
        section.order = new_order
        self.db.flush()
        section_scope(self.db, source_project_id).remove(old_order)

        task_ids = [t.id for t in self._tasks_of(section.id)]
        if task_ids:
            self.db.query(Task).filter(Task.id.in_(task_ids)).update(
                {Task.project_id: target_project_id},
                synchronize_session="fetch"
            )
            detach_foreign_edges(self.db, task_ids)
            drop_foreign_assignees(self.db, task_ids, target_project_id)
            self.db.flush()

        logger.info(f"Section {section.id} moved from project {source_project_id} to {target_project_id}")

    def move(self, user_id: str, project_id: int, section_id: int, target_project_id: int) -> Section:
        section = self.guard.require_section(user_id, project_id, section_id)
        self.guard.require_collaborator(user_id, target_project_id)
        if target_project_id == project_id:
            return section
        with atomic(self.db):
            self._transfer(section, target_project_id)
        return section

    def swap_order(self, user_id: str, project_id: int, section_id: int, target_section_id: int) -> List[Section]:
        self.guard.require_collaborator(user_id, project_id)
        with atomic(self.db):
            section, target = section_scope(self.db, project_id).swap(section_id, target_section_id)
        return [section, target]

    # ============ SUPPRESSION ============

    def delete(self, user_id: str, project_id: int, section_id: int):
        """
        Supprime la section. Ses tâches restent dans le projet, sans section,
        ajoutées à la fin dans leur ordre relatif d'origine.
        """
        section = self.guard.require_section(user_id, project_id, section_id)

        with atomic(self.db):
            unsectioned = task_scope(self.db, project_id, None)
            for task in self._tasks_of(section_id):
                order = unsectioned.append()
                task.section_id = None
                task.task_order = order
                self.db.flush()

            order = section.order
            self.db.delete(section)
            self.db.flush()
            section_scope(self.db, project_id).remove(order)

        logger.info(f"Section {section_id} deleted from project {project_id} by {user_id}")

    # ============ DUPLICATION ============

    def duplicate(self, user_id: str, project_id: int, section_id: int) -> Section:
        """
        Copie la section juste en dessous de l'originale, avec ses tâches.

        Les tâches sont copiées racines d'abord (file de travail) : une tâche n'est
        copiée qu'une fois son parent copié, puis rattachée à la copie du parent.
        Les sous-tâches dont le parent est hors de la section deviennent des racines.
        """
        section = self.guard.require_section(user_id, project_id, section_id)

        with atomic(self.db):
            order = section_scope(self.db, project_id).insert_below(section.id)
            copy = Section(
                name=f"Copy of {section.name}",
                project_id=project_id,
                order=order,
                open=section.open
            )
            self.db.add(copy)
            self.db.flush()

            tasks = self._tasks_of(section_id)
            by_id = {t.id: t for t in tasks}
            edges = self.db.query(SubTask).filter(
                SubTask.task_id.in_(list(by_id)),
                SubTask.sub_task_id.in_(list(by_id))
            ).all() if by_id else []
            children = {}
            has_parent = set()
            for edge in edges:
                children.setdefault(edge.task_id, []).append(edge.sub_task_id)
                has_parent.add(edge.sub_task_id)

            id_map = {}
            queue = [t.id for t in tasks if t.id not in has_parent]
            while queue:
                current = queue.pop(0)
                if current in id_map:
                    continue
                id_map[current] = clone_task(self.db, by_id[current], section_id=copy.id).id
                queue.extend(children.get(current, []))

            for edge in edges:
                if edge.task_id not in id_map or edge.sub_task_id not in id_map:
                    continue
                self.db.add(SubTask(task_id=id_map[edge.task_id], sub_task_id=id_map[edge.sub_task_id]))
            self.db.flush()
            copy_labels(self.db, id_map)

        logger.info(f"Section {section_id} duplicated into {copy.id} ({len(id_map)} tasks)")
        return copy
