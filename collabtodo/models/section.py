from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from datetime import datetime
from collabtodo.core.database import Base

class Section(Base):
    __tablename__ = "sections"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    order = Column(Integer, nullable=False)  # position dans le projet
    open = Column(Boolean, default=True, nullable=False)  # affichage déplié/replié
    created_at = Column(DateTime, default=datetime.utcnow)

    tasks = relationship("Task", order_by="Task.task_order", viewonly=True)

    __table_args__ = (
        Index("ix_sections_project_order", "project_id", "order"),
    )
