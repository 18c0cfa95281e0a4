"""
Service commentaires - attachés à un projet ou à une tâche
"""

import logging
from typing import List

from sqlalchemy import func
from sqlalchemy.orm import Session

from collabtodo.core.database import atomic
from collabtodo.core.exceptions import NotFoundError, InvariantViolation, StoreValidationError
from collabtodo.models.comment import Comment
from collabtodo.models.membership import Membership
from collabtodo.models.task import Task
from collabtodo.schemas.comment import ProjectTarget
from collabtodo.services.guard import CollaboratorGuard

logger = logging.getLogger(__name__)


class CommentService:

    def __init__(self, db: Session):
        self.db = db
        self.guard = CollaboratorGuard(db)

    def _check_access(self, user_id: str, target):
        # accès via le projet de la cible
        if isinstance(target, ProjectTarget):
            self.guard.require_collaborator(user_id, target.id)
        else:
            self.guard.require_task(user_id, target.id)

    @staticmethod
    def _on(target):
        if isinstance(target, ProjectTarget):
            return Comment.project_id == target.id
        return Comment.task_id == target.id

    def list(self, user_id: str, target) -> List[Comment]:
        self._check_access(user_id, target)
        return self.db.query(Comment).filter(
            self._on(target)
        ).order_by(Comment.comment_date, Comment.id).all()

    def add(self, user_id: str, target, text: str) -> Comment:
        if not text or not text.strip():
            raise StoreValidationError("text is required.")
        self._check_access(user_id, target)

        is_project = isinstance(target, ProjectTarget)
        with atomic(self.db):
            comment = Comment(
                text=text,
                author_id=user_id,
                project_id=target.id if is_project else None,
                task_id=None if is_project else target.id
            )
            self.db.add(comment)
            self.db.flush()
        return comment

    def remove(self, user_id: str, target, comment_id: int):
        """Seul l'auteur peut supprimer son commentaire"""
        self._check_access(user_id, target)
        comment = self.db.query(Comment).filter(
            Comment.id == comment_id,
            self._on(target)
        ).first()
        if comment is None:
            raise NotFoundError("Comment")
        if comment.author_id != user_id:
            raise InvariantViolation("Only the author can delete a comment")

        with atomic(self.db):
            self.db.delete(comment)
        logger.info(f"Comment {comment_id} deleted by {user_id}")

    def search(self, user_id: str, text: str) -> List[Comment]:
        """Commentaires visibles (projet ou tâche d'un projet dont l'user est membre)"""
        return self.db.query(Comment).outerjoin(
            Task, Task.id == Comment.task_id
        ).join(
            Membership, Membership.project_id == func.coalesce(Comment.project_id, Task.project_id)
        ).filter(
            Membership.user_id == user_id,
            Comment.text.ilike(f"%{text}%")
        ).order_by(Comment.comment_date.desc()).all()
