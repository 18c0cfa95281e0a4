"""
Service labels - labels personnels d'un user, ordonnés, associables aux tâches
"""

import logging
from typing import List

from sqlalchemy.orm import Session

from collabtodo.core.database import atomic
from collabtodo.core.exceptions import NotFoundError, StoreValidationError
from collabtodo.models.label import Label
from collabtodo.models.task import TaskLabel
from collabtodo.services.ordering import label_scope

logger = logging.getLogger(__name__)


class LabelService:

    def __init__(self, db: Session):
        self.db = db

    def _require(self, user_id: str, label_id: int) -> Label:
        label = self.db.query(Label).filter(
            Label.id == label_id,
            Label.user_id == user_id
        ).first()
        if label is None:
            raise NotFoundError("Label")
        return label

    @staticmethod
    def _check_title(title):
        if not title or not title.strip():
            raise StoreValidationError("title is required.")
        return title.strip()

    def list(self, user_id: str) -> List[Label]:
        return label_scope(self.db, user_id).items()

    def search(self, user_id: str, text: str) -> List[Label]:
        return self.db.query(Label).filter(
            Label.user_id == user_id,
            Label.title.ilike(f"%{text}%")
        ).order_by(Label.order).all()

    def create(self, user_id: str, title: str) -> Label:
        title = self._check_title(title)
        with atomic(self.db):
            label = Label(
                title=title,
                user_id=user_id,
                order=label_scope(self.db, user_id).append()
            )
            self.db.add(label)
            self.db.flush()
        return label

    def rename(self, user_id: str, label_id: int, title: str) -> Label:
        title = self._check_title(title)
        label = self._require(user_id, label_id)
        with atomic(self.db):
            label.title = title
        return label

    def delete(self, user_id: str, label_id: int):
        label = self._require(user_id, label_id)
        with atomic(self.db):
            order = label.order
            self.db.query(TaskLabel).filter(TaskLabel.label_id == label_id).delete(synchronize_session=False)
            self.db.delete(label)
            self.db.flush()
            label_scope(self.db, user_id).remove(order)
        logger.info(f"Label {label_id} deleted by {user_id}")

    def swap_order(self, user_id: str, label_id: int, target_label_id: int) -> List[Label]:
        with atomic(self.db):
            label, target = label_scope(self.db, user_id).swap(label_id, target_label_id)
        return [label, target]

    def resolve(self, user_id: str, label_ids: List[int]) -> List[int]:
        """
        Vérifie que chaque id est un label de l'user.

        Retourne les ids dédoublonnés dans l'ordre reçu, NotFoundError sinon.
        """
        ids = list(dict.fromkeys(label_ids or []))
        if not ids:
            return []
        found = {row.id for row in self.db.query(Label.id).filter(
            Label.id.in_(ids),
            Label.user_id == user_id
        ).all()}
        if len(found) != len(ids):
            raise NotFoundError("Label")
        return ids

    def assign_to_task(self, task_id: int, label_ids: List[int]):
        if not label_ids:
            return
        existing = {row.label_id for row in self.db.query(TaskLabel.label_id).filter(
            TaskLabel.task_id == task_id
        ).all()}
        for label_id in label_ids:
            if label_id not in existing:
                self.db.add(TaskLabel(task_id=task_id, label_id=label_id))
                existing.add(label_id)
        self.db.flush()
