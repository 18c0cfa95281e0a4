from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, CheckConstraint
from datetime import datetime
from collabtodo.core.database import Base

class Comment(Base):
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, index=True)
    text = Column(Text, nullable=False)
    author_id = Column(String(255), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    comment_date = Column(DateTime, default=datetime.utcnow, nullable=False)

    # exactement une cible : projet OU tâche
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=True, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=True, index=True)

    __table_args__ = (
        CheckConstraint(
            "(project_id IS NULL) <> (task_id IS NULL)",
            name="ck_comments_single_target",
        ),
    )
