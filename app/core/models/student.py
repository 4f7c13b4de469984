from datetime import datetime

from sqlalchemy import Column, DateTime, Index, Integer, String, func
from sqlalchemy.orm import relationship

from app.db.session import Base


class Student(Base):
    """Roster entry. Looked up by id, or case-insensitively by name when importing from the sheet."""

    __tablename__ = "students"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    attendance = relationship(
        "StudentAttendance", back_populates="student", cascade="all, delete-orphan"
    )

    # Sheet rows carry names, not ids: one student per case-insensitive name
    __table_args__ = (Index("uq_students_name_lower", func.lower(name), unique=True),)
