"""Task model"""

from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, ForeignKey, Index, SmallInteger
from sqlalchemy.orm import relationship
from datetime import datetime
from collabtodo.core.database import Base


class TaskLabel(Base):
    __tablename__ = "task_labels"

    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True)
    label_id = Column(Integer, ForeignKey("labels.id", ondelete="CASCADE"), primary_key=True)


class SubTask(Base):
    """Arête parent -> sous-tâche. Une tâche a au plus un parent."""
    __tablename__ = "sub_tasks"

    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True)
    sub_task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True, unique=True)


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    due_date = Column(DateTime, nullable=True, index=True)
    priority = Column(SmallInteger, nullable=True)  # 0..3

    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    section_id = Column(Integer, ForeignKey("sections.id", ondelete="SET NULL"), nullable=True, index=True)
    assign_to = Column(String(255), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    completed = Column(Boolean, default=False, nullable=False)
    task_order = Column(Integer, nullable=False)  # scope = section si présente, sinon projet

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    labels = relationship("Label", secondary="task_labels", order_by="Label.order", viewonly=True)
    comments = relationship("Comment", order_by="Comment.comment_date", viewonly=True)
    sub_tasks = relationship(
        "Task",
        secondary="sub_tasks",
        primaryjoin="Task.id == SubTask.task_id",
        secondaryjoin="Task.id == SubTask.sub_task_id",
        order_by="Task.task_order",
        viewonly=True,
    )
    parent_link = relationship(
        "SubTask",
        primaryjoin="Task.id == SubTask.sub_task_id",
        uselist=False,
        viewonly=True,
    )

    @property
    def parent_task_id(self):
        return self.parent_link.task_id if self.parent_link else None

    __table_args__ = (
        Index("ix_tasks_scope_order", "project_id", "section_id", "task_order"),
    )
