"""
Service utilisateurs - création au premier login + Inbox par défaut
"""

import logging
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from collabtodo.core.config import settings
from collabtodo.core.database import atomic
from collabtodo.models.user import User
from collabtodo.models.project import ViewType
from collabtodo.schemas.project import ProjectCreate
from collabtodo.services.project_service import ProjectService

logger = logging.getLogger(__name__)


class UserService:

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def list_all(self) -> List[User]:
        return self.db.query(User).order_by(User.display_name).all()

    def search(self, text: str) -> List[User]:
        pattern = f"%{text}%"
        return self.db.query(User).filter(
            or_(User.display_name.ilike(pattern), User.email.ilike(pattern))
        ).order_by(User.display_name).all()

    def ensure_user(self, user_id: str, display_name: Optional[str] = None,
                    email: Optional[str] = None, photo: Optional[str] = None) -> User:
        """
        Retourne l'user, le crée s'il n'existe pas encore.

        A la création on lui ouvre aussi son Inbox (projet par défaut, non supprimable).
        Ensuite seuls les champs de profil fournis sont mis à jour.
        """
        user = self.get(user_id)
        if user is None:
            try:
                with atomic(self.db):
                    user = User(id=user_id, display_name=display_name, email=email, photo=photo)
                    self.db.add(user)
                    self.db.flush()
                    ProjectService(self.db).create(user_id, ProjectCreate(
                        name=settings.INBOX_NAME,
                        view=ViewType.LIST,
                        default_inbox=True
                    ))
            except IntegrityError:
                # deux premières requêtes en parallèle : l'autre a gagné
                user = self.get(user_id)
                if user is None:
                    raise
                return user
            logger.info(f"User {user_id} created with its default inbox")
            return user

        profile = {"display_name": display_name, "email": email, "photo": photo}
        changed = {k: v for k, v in profile.items() if v is not None and getattr(user, k) != v}
        if changed:
            with atomic(self.db):
                for field, value in changed.items():
                    setattr(user, field, value)
        return user
