"""Project model"""

import enum

from sqlalchemy import Column, Integer, String, DateTime, Boolean, Enum
from sqlalchemy.orm import relationship
from datetime import datetime
from collabtodo.core.database import Base


class ViewType(str, enum.Enum):
    LIST = "list"
    DASHBOARD = "dashboard"


class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    view = Column(Enum(ViewType), nullable=False, default=ViewType.LIST)
    archived = Column(Boolean, default=False, nullable=False)
    default_inbox = Column(Boolean, default=False, nullable=False)

    # préférences d'affichage
    group_by = Column(String, nullable=True)
    sort_by = Column(String, nullable=True)
    filter_by = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    memberships = relationship("Membership", viewonly=True)
    sections = relationship("Section", order_by="Section.order", viewonly=True)
