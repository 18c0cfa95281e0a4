from sqlalchemy import Column, Integer, String, ForeignKey
from collabtodo.core.database import Base

class Label(Base):
    __tablename__ = "labels"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False, index=True)
    user_id = Column(String(255), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    order = Column(Integer, nullable=False)  # position dans les labels de l'user
