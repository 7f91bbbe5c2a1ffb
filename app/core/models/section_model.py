"""Organizational owner of courses (e.g. a department head's section). Scopes visibility of planning data."""
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from app.db.session import Base


class Section(Base):
    __tablename__ = "sections"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, unique=True, index=True)  # owner account
    name = Column(String(100), nullable=False)
    # Set by the section owner when its planning is finished; reset for every
    # section when a new semester is created.
    planning_closed = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
