from sqlalchemy import Column, ForeignKey, Integer, String

from app.db.session import Base


class Course(Base):
    """Course catalog entry. Reference data maintained elsewhere; planning only reads it."""

    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    section_id = Column(Integer, ForeignKey("sections.id", ondelete="RESTRICT"), nullable=False, index=True)
