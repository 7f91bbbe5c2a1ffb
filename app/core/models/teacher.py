from sqlalchemy import Column, Integer

from app.db.session import Base


class Teacher(Base):
    """Teacher profile. max_hours is the workload ceiling used by capacity checks."""

    __tablename__ = "teachers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, unique=True, index=True)
    employment_type_id = Column(Integer, nullable=True)
    max_hours = Column(Integer, nullable=False, default=0)
