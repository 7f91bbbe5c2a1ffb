"""Teacher-to-class assignment (semester-bound). Created PENDING; the teacher accepts or rejects it."""

from datetime import datetime

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, String, UniqueConstraint

from app.core.enums import AssignmentStatus
from app.db.session import Base


class TeacherAssignment(Base):
    __tablename__ = "teacher_assignments"
    __table_args__ = (
        UniqueConstraint("teacher_id", "class_id", name="uq_teacher_assignment_teacher_class"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    teacher_id = Column(Integer, ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False, index=True)
    class_id = Column(Integer, ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True)
    semester_id = Column(Integer, ForeignKey("semesters.id", ondelete="RESTRICT"), nullable=False, index=True)
    work_hours = Column(Integer, nullable=False, default=0)
    full_time_extra_hours = Column(Integer, nullable=False, default=0)
    adjunct_extra_hours = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default=AssignmentStatus.PENDING.value)
    decision = Column(Boolean, nullable=True)  # None until the teacher decides
    observation = Column(String(500), nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
