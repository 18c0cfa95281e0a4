"""Membership model : lien User x Project avec ses propres données"""

from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, Index
from sqlalchemy.orm import relationship
from collabtodo.core.database import Base


class Membership(Base):
    __tablename__ = "user_projects"

    user_id = Column(String(255), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True)

    owner = Column(Boolean, default=False, nullable=False)  # créateur, seul à pouvoir supprimer
    order = Column(Integer, nullable=False)  # position dans la liste de projets de l'user
    favorite = Column(Boolean, default=False, nullable=False)

    project = relationship("Project")
    user = relationship("User")

    __table_args__ = (
        Index("ix_user_projects_user_order", "user_id", "order"),
    )
