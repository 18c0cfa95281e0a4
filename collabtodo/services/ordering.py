"""
Ordre dense dans un scope.

Un scope = l'ensemble des frères qui partagent une colonne d'ordre :
- les projets d'un user (via Membership.order)
- les sections d'un projet
- les tâches d'une section, ou les tâches sans section d'un projet
- les labels d'un user

Chaque opération verrouille d'abord la ligne parente du scope (SELECT ... FOR UPDATE)
pour que deux insertions concurrentes ne calculent pas le même ordre.
Sur SQLite le verrou vient du BEGIN IMMEDIATE posé par core.database.
"""

from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from collabtodo.core.exceptions import NotFoundError, StoreValidationError
from collabtodo.models.user import User
from collabtodo.models.project import Project
from collabtodo.models.membership import Membership
from collabtodo.models.section import Section
from collabtodo.models.task import Task
from collabtodo.models.label import Label


class OrderedCollection:

    def __init__(self, db: Session, model, criteria, key, column, lock=None, entity: str = "Item"):
        self.db = db
        self.model = model
        self.criteria = list(criteria)
        self.key = key
        self.column = column
        self.lock = lock  # (Model, id) de la ligne parente
        self.entity = entity

    # ============ LECTURE ============

    def _query(self):
        return self.db.query(self.model).filter(*self.criteria)

    def _lock(self):
        if self.lock is None:
            return
        parent_model, parent_id = self.lock
        self.db.query(parent_model).filter(parent_model.id == parent_id).with_for_update().first()

    def _order(self, row) -> int:
        return getattr(row, self.column.key)

    def _shift(self, *conditions, delta: int):
        self._query().filter(*conditions).update(
            {self.column: self.column + delta},
            synchronize_session="fetch",
        )

    def items(self) -> List:
        self.db.flush()
        return self._query().order_by(self.column).all()

    def find(self, key_value):
        self.db.flush()
        return self._query().filter(self.key == key_value).first()

    def max_order(self) -> Optional[int]:
        self.db.flush()
        return self.db.query(func.max(self.column)).filter(*self.criteria).scalar()

    def _require(self, key_value):
        row = self.find(key_value)
        if row is None:
            raise NotFoundError(self.entity)
        return row

    # ============ INSERTION ============

    def append(self) -> int:
        self._lock()
        current = self.max_order()
        if current is None:
            return 1
        return current + 1

    def insert_above(self, anchor_key) -> int:
        """Les frères strictement avant l'ancre descendent de 1, le nouveau prend ancre - 1"""
        self._lock()
        anchor = self._require(anchor_key)
        position = self._order(anchor)
        self._shift(self.column < position, delta=-1)
        return position - 1

    def insert_below(self, anchor_key) -> int:
        """Les frères strictement après l'ancre montent de 1, le nouveau prend ancre + 1"""
        self._lock()
        anchor = self._require(anchor_key)
        position = self._order(anchor)
        self._shift(self.column > position, delta=1)
        return position + 1

    def place(self, above=None, below=None) -> int:
        if above is not None and below is not None:
            raise StoreValidationError("Only one of above/below can be given")
        if above is not None:
            return self.insert_above(above)
        if below is not None:
            return self.insert_below(below)
        return self.append()

    # ============ RÉORGANISATION ============

    def swap(self, key_a, key_b) -> Tuple:
        """Échange les deux ordres. Si l'un manque, rien n'est modifié."""
        self._lock()
        row_a = self._require(key_a)
        row_b = self._require(key_b)
        order_a, order_b = self._order(row_a), self._order(row_b)
        setattr(row_a, self.column.key, order_b)
        setattr(row_b, self.column.key, order_a)
        self.db.flush()
        return row_a, row_b

    def remove(self, order: int):
        """Referme le trou laissé par un membre qui a quitté le scope"""
        self._lock()
        self.db.flush()
        self._shift(self.column > order, delta=-1)

    def move_to(self, key_value, new_order: int):
        self._lock()
        row = self._require(key_value)
        old_order = self._order(row)

        lowest = self.db.query(func.min(self.column)).filter(*self.criteria).scalar()
        highest = self.max_order()
        new_order = max(lowest, min(new_order, highest))
        if new_order == old_order:
            return row

        if new_order < old_order:
            self._shift(self.column >= new_order, self.column < old_order, self.key != key_value, delta=1)
        else:
            self._shift(self.column > old_order, self.column <= new_order, self.key != key_value, delta=-1)

        setattr(row, self.column.key, new_order)
        self.db.flush()
        return row


# ============ SCOPES ============

def project_scope(db: Session, user_id: str) -> OrderedCollection:
    return OrderedCollection(
        db, Membership, [Membership.user_id == user_id],
        key=Membership.project_id, column=Membership.order,
        lock=(User, user_id), entity="Project",
    )


def section_scope(db: Session, project_id: int) -> OrderedCollection:
    return OrderedCollection(
        db, Section, [Section.project_id == project_id],
        key=Section.id, column=Section.order,
        lock=(Project, project_id), entity="Section",
    )


def task_scope(db: Session, project_id: int, section_id: Optional[int] = None) -> OrderedCollection:
    if section_id is None:
        criteria = [Task.project_id == project_id, Task.section_id.is_(None)]
        lock = (Project, project_id)
    else:
        criteria = [Task.project_id == project_id, Task.section_id == section_id]
        lock = (Section, section_id)
    return OrderedCollection(
        db, Task, criteria,
        key=Task.id, column=Task.task_order,
        lock=lock, entity="Task",
    )


def task_scope_of(db: Session, task: Task) -> OrderedCollection:
    return task_scope(db, task.project_id, task.section_id)


def label_scope(db: Session, user_id: str) -> OrderedCollection:
    return OrderedCollection(
        db, Label, [Label.user_id == user_id],
        key=Label.id, column=Label.order,
        lock=(User, user_id), entity="Label",
    )
