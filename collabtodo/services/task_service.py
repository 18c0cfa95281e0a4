"""Task service"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import or_, and_, select
from sqlalchemy.orm import Session

from collabtodo.core.database import atomic
from collabtodo.core.exceptions import InvariantViolation, StoreValidationError
from collabtodo.models.membership import Membership
from collabtodo.models.section import Section
from collabtodo.models.task import Task, TaskLabel, SubTask
from collabtodo.models.comment import Comment
from collabtodo.schemas.task import TaskCreate, TaskUpdate
from collabtodo.services.guard import CollaboratorGuard
from collabtodo.services.label_service import LabelService
from collabtodo.services.ordering import task_scope, task_scope_of

logger = logging.getLogger(__name__)

CLONED_FIELDS = (
    "title", "description", "due_date", "priority", "project_id",
    "section_id", "assign_to", "completed", "task_order",
)


# ============ HELPERS (partagés avec sections / projets) ============

def clone_task(db: Session, task: Task, **overrides) -> Task:
    values = {field: getattr(task, field) for field in CLONED_FIELDS}
    values.update(overrides)
    copy = Task(**values)
    db.add(copy)
    db.flush()
    return copy


def copy_labels(db: Session, id_map: dict):
    """Recopie les labels des tâches sources sur leurs copies"""
    if not id_map:
        return
    rows = db.query(TaskLabel).filter(TaskLabel.task_id.in_(list(id_map))).all()
    for row in rows:
        db.add(TaskLabel(task_id=id_map[row.task_id], label_id=row.label_id))
    db.flush()


def copy_sub_task_edges(db: Session, id_map: dict):
    """Recrée les arêtes parent -> enfant dont les deux bouts ont été copiés"""
    if not id_map:
        return
    ids = list(id_map)
    edges = db.query(SubTask).filter(
        SubTask.task_id.in_(ids),
        SubTask.sub_task_id.in_(ids)
    ).all()
    for edge in edges:
        db.add(SubTask(task_id=id_map[edge.task_id], sub_task_id=id_map[edge.sub_task_id]))
    db.flush()


def descendant_ids(db: Session, task_id: int) -> List[int]:
    """Tous les descendants d'une tâche (parcours en largeur, chaque noeud une seule fois)"""
    seen = {task_id}
    result = []
    frontier = [task_id]
    while frontier:
        rows = db.query(SubTask.sub_task_id).filter(SubTask.task_id.in_(frontier)).all()
        frontier = []
        for (child_id,) in rows:
            if child_id not in seen:
                seen.add(child_id)
                result.append(child_id)
                frontier.append(child_id)
    return result


def purge_tasks(db: Session, task_ids: List[int]):
    """Supprime des tâches avec leurs commentaires, labels et arêtes. Les ordres ne sont pas touchés."""
    if not task_ids:
        return
    db.query(Comment).filter(Comment.task_id.in_(task_ids)).delete(synchronize_session=False)
    db.query(TaskLabel).filter(TaskLabel.task_id.in_(task_ids)).delete(synchronize_session=False)
    db.query(SubTask).filter(
        or_(SubTask.task_id.in_(task_ids), SubTask.sub_task_id.in_(task_ids))
    ).delete(synchronize_session=False)
    db.query(Task).filter(Task.id.in_(task_ids)).delete(synchronize_session=False)
    db.flush()


def detach_foreign_edges(db: Session, task_ids: List[int]):
    """Coupe les arêtes entre l'ensemble donné et le reste (changement de projet)"""
    if not task_ids:
        return
    inside_parent = SubTask.task_id.in_(task_ids)
    inside_child = SubTask.sub_task_id.in_(task_ids)
    db.query(SubTask).filter(
        or_(and_(inside_parent, ~inside_child), and_(~inside_parent, inside_child))
    ).delete(synchronize_session=False)


def drop_foreign_assignees(db: Session, task_ids: List[int], project_id: int):
    """Désassigne les tâches dont l'assigné n'est pas collaborateur du projet"""
    if not task_ids:
        return
    members = select(Membership.user_id).where(Membership.project_id == project_id)
    db.query(Task).filter(
        Task.id.in_(task_ids),
        Task.assign_to.isnot(None),
        ~Task.assign_to.in_(members)
    ).update({Task.assign_to: None}, synchronize_session="fetch")


def close_gaps(db: Session, slots):
    """slots = [(project_id, section_id, order)] libérés. Traités du plus grand ordre au plus petit."""
    for project_id, section_id, order in sorted(slots, key=lambda slot: slot[2], reverse=True):
        task_scope(db, project_id, section_id).remove(order)


class TaskService:

    def __init__(self, db: Session):
        self.db = db
        self.guard = CollaboratorGuard(db)
        self.labels = LabelService(db)

    # ============ VALIDATION ============

    @staticmethod
    def _check_priority(priority):
        if priority is not None and not 0 <= priority <= 3:
            raise StoreValidationError("priority must be between 0 and 3.")

    def _check_assignee(self, project_id: int, assign_to: str):
        if not self.guard.is_collaborator(assign_to, project_id):
            raise InvariantViolation("Assignee must be a collaborator of the project")

    def _check_target(self, user_id: str, project_id: int, section_id: Optional[int]):
        self.guard.require_collaborator(user_id, project_id)
        if section_id is not None:
            self.guard.require_section(user_id, project_id, section_id)

    def _visible(self, user_id: str):
        return self.db.query(Task).join(
            Membership, Membership.project_id == Task.project_id
        ).filter(Membership.user_id == user_id)

    # ============ LECTURE ============

    def list(self, user_id: str, project_id: int) -> List[Task]:
        self.guard.require_collaborator(user_id, project_id)
        return self.db.query(Task).outerjoin(
            Section, Section.id == Task.section_id
        ).filter(
            Task.project_id == project_id
        ).order_by(Section.order.nulls_first(), Task.task_order).all()

    def get(self, user_id: str, task_id: int) -> Optional[Task]:
        return self.guard.find_task(user_id, task_id)

    def today(self, user_id: str, now: Optional[datetime] = None) -> List[Task]:
        """Tâches ouvertes dues aujourd'hui ou en retard"""
        now = now or datetime.utcnow()
        tomorrow = datetime.combine(now.date() + timedelta(days=1), datetime.min.time())
        return self._visible(user_id).filter(
            Task.completed == False,
            Task.due_date.isnot(None),
            Task.due_date < tomorrow
        ).order_by(Task.due_date, Task.id).all()

    def upcoming(self, user_id: str, now: Optional[datetime] = None) -> List[Task]:
        now = now or datetime.utcnow()
        tomorrow = datetime.combine(now.date() + timedelta(days=1), datetime.min.time())
        return self._visible(user_id).filter(
            Task.completed == False,
            Task.due_date >= tomorrow
        ).order_by(Task.due_date, Task.id).all()

    def label_tasks(self, user_id: str, label_id: int) -> List[Task]:
        self.labels.resolve(user_id, [label_id])
        return self._visible(user_id).join(
            TaskLabel, TaskLabel.task_id == Task.id
        ).filter(
            TaskLabel.label_id == label_id
        ).order_by(Task.project_id, Task.task_order).all()

    def search(self, user_id: str, text: str) -> List[Task]:
        pattern = f"%{text}%"
        return self._visible(user_id).filter(
            or_(Task.title.ilike(pattern), Task.description.ilike(pattern))
        ).order_by(Task.project_id, Task.task_order).all()

    # ============ CRÉATION / MODIFICATION ============

    def create(self, user_id: str, data: TaskCreate) -> Task:
        """
        Crée une tâche dans une section ou directement dans le projet.

        Position : task_order explicite (borné au scope), sinon au-dessus / en dessous
        d'une tâche donnée, sinon à la fin.
        """
        if not data.title or not data.title.strip():
            raise StoreValidationError("title is required.")
        if data.project_id is None:
            raise StoreValidationError("project_id is required.")
        self._check_priority(data.priority)

        self._check_target(user_id, data.project_id, data.section_id)
        parent = None
        if data.parent_task_id is not None:
            parent = self.guard.require_task(user_id, data.parent_task_id)
            if parent.project_id != data.project_id:
                raise InvariantViolation("Parent task must belong to the same project")
        if data.assign_to is not None:
            self._check_assignee(data.project_id, data.assign_to)
        label_ids = self.labels.resolve(user_id, data.labels)

        with atomic(self.db):
            scope = task_scope(self.db, data.project_id, data.section_id)
            task = Task(
                title=data.title,
                description=data.description,
                due_date=data.due_date,
                priority=data.priority,
                project_id=data.project_id,
                section_id=data.section_id,
                assign_to=data.assign_to,
                completed=data.completed,
                task_order=scope.place(above=data.above_task_id, below=data.below_task_id)
            )
            self.db.add(task)
            self.db.flush()

            if data.task_order is not None:
                scope.move_to(task.id, data.task_order)
            if parent is not None:
                self.db.add(SubTask(task_id=parent.id, sub_task_id=task.id))
            self.labels.assign_to_task(task.id, label_ids)
            self.db.flush()

        logger.info(f"Task {task.id} created in project {data.project_id} by {user_id}")
        return task

    def update(self, user_id: str, task_id: int, data: TaskUpdate) -> Task:
        """
        Mise à jour partielle.

        Les labels sont comparés à l'existant : on retire les absents, on ajoute les nouveaux.
        Un changement de section replace la tâche à la fin de la nouvelle section.
        """
        task = self.guard.require_task(user_id, task_id)
        fields = data.model_dump(exclude_unset=True)

        if fields.get("title") is not None and not fields["title"].strip():
            raise StoreValidationError("title cannot be empty.")
        if "priority" in fields:
            self._check_priority(fields["priority"])
        if fields.get("assign_to") is not None:
            self._check_assignee(task.project_id, fields["assign_to"])

        moving = "section_id" in fields and fields["section_id"] != task.section_id
        if moving and fields["section_id"] is not None:
            self.guard.require_section(user_id, task.project_id, fields["section_id"])

        added, removed = [], []
        if fields.get("labels") is not None:
            current = [label.id for label in task.labels]
            wanted = list(dict.fromkeys(fields["labels"]))
            added = [label_id for label_id in wanted if label_id not in current]
            removed = [label_id for label_id in current if label_id not in wanted]
            self.labels.resolve(user_id, added)

        with atomic(self.db):
            for field in ("title", "completed"):
                if fields.get(field) is not None:
                    setattr(task, field, fields[field])
            for field in ("description", "due_date", "priority", "assign_to"):
                if field in fields:
                    setattr(task, field, fields[field])

            if moving:
                old_slot = (task.project_id, task.section_id, task.task_order)
                new_order = task_scope(self.db, task.project_id, fields["section_id"]).append()
                task.section_id = fields["section_id"]
                task.task_order = new_order
                self.db.flush()
                close_gaps(self.db, [old_slot])
            elif fields.get("task_order") is not None:
                task_scope_of(self.db, task).move_to(task.id, fields["task_order"])

            if removed:
                self.db.query(TaskLabel).filter(
                    TaskLabel.task_id == task.id,
                    TaskLabel.label_id.in_(removed)
                ).delete(synchronize_session=False)
            self.labels.assign_to_task(task.id, added)
            self.db.flush()

        return task

    def assign(self, user_id: str, task_id: int, assign_to: Optional[str]) -> Task:
        return self.update(user_id, task_id, TaskUpdate(assign_to=assign_to))

    def set_priority(self, user_id: str, task_id: int, priority: Optional[int]) -> Task:
        return self.update(user_id, task_id, TaskUpdate(priority=priority))

    def set_due_date(self, user_id: str, task_id: int, due_date: Optional[datetime]) -> Task:
        return self.update(user_id, task_id, TaskUpdate(due_date=due_date))

    def complete(self, user_id: str, task_id: int) -> Task:
        return self.update(user_id, task_id, TaskUpdate(completed=True))

    def reopen(self, user_id: str, task_id: int) -> Task:
        return self.update(user_id, task_id, TaskUpdate(completed=False))

    # ============ ORDRE / DÉPLACEMENT ============

    def swap_order(self, user_id: str, task_id: int, target_task_id: int) -> List[Task]:
        task = self.guard.require_task(user_id, task_id)
        target = self.guard.require_task(user_id, target_task_id)
        if (task.project_id, task.section_id) != (target.project_id, target.section_id):
            raise InvariantViolation("Both tasks must be in the same section to swap")
        with atomic(self.db):
            task, target = task_scope_of(self.db, task).swap(task.id, target.id)
        return [task, target]

    def _relocate(self, tasks: List[Task], project_id: int, section_id: Optional[int]) -> List[Task]:
        """
        Ajoute les tâches à la fin du scope cible dans l'ordre reçu.

        Les tâches déjà dans ce scope ne bougent pas. Les trous laissés dans les
        scopes d'origine sont refermés à la fin.
        """
        target = task_scope(self.db, project_id, section_id)
        moving = [t for t in tasks if (t.project_id, t.section_id) != (project_id, section_id)]
        slots = [(t.project_id, t.section_id, t.task_order) for t in moving]
        changes_project = any(t.project_id != project_id for t in moving)

        for task in moving:
            order = target.append()
            task.project_id = project_id
            task.section_id = section_id
            task.task_order = order
            self.db.flush()

        close_gaps(self.db, slots)
        if changes_project:
            ids = [t.id for t in moving]
            detach_foreign_edges(self.db, ids)
            drop_foreign_assignees(self.db, ids, project_id)
        return moving

    def move(self, user_id: str, project_id: int, target_project_id: int,
             target_section_id: Optional[int] = None) -> List[Task]:
        """Déplace toutes les tâches d'un projet vers un autre projet (ou une de ses sections)"""
        self.guard.require_collaborator(user_id, project_id)
        self._check_target(user_id, target_project_id, target_section_id)

        with atomic(self.db):
            tasks = self.db.query(Task).outerjoin(
                Section, Section.id == Task.section_id
            ).filter(
                Task.project_id == project_id
            ).order_by(Section.order.nulls_first(), Task.task_order).all()
            moved = self._relocate(tasks, target_project_id, target_section_id)

        logger.info(f"{len(moved)} tasks moved from project {project_id} to {target_project_id} by {user_id}")
        return moved

    def move_task(self, user_id: str, task_id: int, target_project_id: int,
                  target_section_id: Optional[int] = None) -> Task:
        """
        Déplace une tâche. Vers un autre projet, ses sous-tâches la suivent
        (une arête ne relie jamais deux projets).
        """
        task = self.guard.require_task(user_id, task_id)
        self._check_target(user_id, target_project_id, target_section_id)

        with atomic(self.db):
            tasks = [task]
            if task.project_id != target_project_id:
                children = descendant_ids(self.db, task.id)
                if children:
                    tasks += self.db.query(Task).filter(
                        Task.id.in_(children)
                    ).order_by(Task.task_order, Task.id).all()
            self._relocate(tasks, target_project_id, target_section_id)

        return task

    # ============ SUPPRESSION / DUPLICATION ============

    def delete(self, user_id: str, task_id: int):
        task = self.guard.require_task(user_id, task_id)
        with atomic(self.db):
            ids = [task.id] + descendant_ids(self.db, task.id)
            slots = [
                (row.project_id, row.section_id, row.task_order)
                for row in self.db.query(Task).filter(Task.id.in_(ids)).all()
            ]
            purge_tasks(self.db, ids)
            close_gaps(self.db, slots)
        logger.info(f"Task {task_id} deleted with {len(ids) - 1} sub-tasks by {user_id}")

    def duplicate(self, user_id: str, task_id: int) -> Task:
        """
        Copie une tâche et toute sa descendance.

        La copie racine garde le même parent. Les descendants sont copiés en
        profondeur avec une pile explicite, chacun rattaché à la copie de son parent.
        Toutes les copies sont titrées "Copy of ...".
        """
        task = self.guard.require_task(user_id, task_id)

        with atomic(self.db):
            root = clone_task(
                self.db, task,
                title=f"Copy of {task.title}",
                task_order=task_scope_of(self.db, task).append()
            )
            if task.parent_task_id is not None:
                self.db.add(SubTask(task_id=task.parent_task_id, sub_task_id=root.id))

            id_map = {task.id: root.id}
            stack = [task.id]
            while stack:
                current = stack.pop()
                children = self.db.query(Task).join(
                    SubTask, SubTask.sub_task_id == Task.id
                ).filter(
                    SubTask.task_id == current
                ).order_by(Task.task_order).all()
                for child in children:
                    if child.id in id_map:
                        continue
                    copy = clone_task(
                        self.db, child,
                        title=f"Copy of {child.title}",
                        task_order=task_scope_of(self.db, child).append()
                    )
                    id_map[child.id] = copy.id
                    self.db.add(SubTask(task_id=id_map[current], sub_task_id=copy.id))
                    stack.append(child.id)

            self.db.flush()
            copy_labels(self.db, id_map)

        logger.info(f"Task {task_id} duplicated into {root.id} ({len(id_map)} tasks)")
        return root
