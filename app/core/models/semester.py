from datetime import datetime

from sqlalchemy import Boolean, Column, Date, DateTime, Index, Integer, UniqueConstraint, text

from app.db.session import Base


class Semester(Base):
    """
    Academic term. Only one semester can be is_current = true; the partial unique
    index enforces it at the storage layer so two concurrent activations cannot
    both commit.
    """

    __tablename__ = "semesters"
    __table_args__ = (
        UniqueConstraint("year", "period", name="uq_semester_year_period"),
        Index(
            "uq_semester_single_current",
            "is_current",
            unique=True,
            postgresql_where=text("is_current"),
            sqlite_where=text("is_current = 1"),
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    year = Column(Integer, nullable=False)
    period = Column(Integer, nullable=False)  # e.g. 1 | 2 | 3 (intersemester)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    start_special_week = Column(Date, nullable=True)
    is_current = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
