from sqlalchemy import Column, String, DateTime
from datetime import datetime
from collabtodo.core.database import Base

class User(Base):
    __tablename__ = "users"

    # id opaque fourni par le provider d'identité
    id = Column(String(255), primary_key=True, index=True)
    display_name = Column(String(255), nullable=True, index=True)
    email = Column(String(1000), nullable=True, index=True)
    photo = Column(String(1000), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
