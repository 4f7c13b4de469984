from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from app.db.session import Base


class StudentAttendance(Base):
    """Student attendance: one per student per calendar day (display timezone).

    checked_in_at / checked_out_at are naive UTC. checked_out_at is NULL while the
    student is still present.
    """

    __tablename__ = "student_attendance"
    __table_args__ = (
        # Backstop for concurrent sheet imports racing on the same (student, day)
        UniqueConstraint("student_id", "date", name="uq_student_attendance_student_date"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False, index=True)
    checked_in_at = Column(DateTime, nullable=False)
    checked_out_at = Column(DateTime, nullable=True)
    subteam = Column(String(255), nullable=False, default="")

    student = relationship("Student", back_populates="attendance")
