"""Weekly slot of a class: day, time range, classroom (None for remote modality)."""

from sqlalchemy import Boolean, Column, ForeignKey, Index, Integer, String, Time

from app.db.session import Base


class ClassSchedule(Base):
    __tablename__ = "class_schedules"
    __table_args__ = (Index("ix_class_schedules_classroom_day", "classroom_id", "day"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    class_id = Column(Integer, ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True)
    classroom_id = Column(Integer, nullable=True)
    day = Column(String(10), nullable=False)  # MONDAY .. SUNDAY
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    modality_id = Column(Integer, nullable=True)
    disability = Column(Boolean, nullable=False, default=False)
