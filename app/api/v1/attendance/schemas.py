from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class StudentAttendanceRecord(BaseModel):
    """Single student attendance record (timestamps in UTC)."""

    id: int
    student_id: int
    student_name: str
    date: date
    checked_in_at: datetime
    checked_out_at: Optional[datetime] = None
    subteam: str = ""


class StudentAttendanceDay(BaseModel):
    """Everyone who checked in on a day."""

    date: date
    total_present: int
    total_checked_out: int
    records: List[StudentAttendanceRecord]


class RosterEntry(BaseModel):
    id: int
    name: str
    checked_in: bool = False
    checked_out: bool = False


class StudentRoster(BaseModel):
    date: date
    students: List[RosterEntry]


class ClockInRequest(BaseModel):
    """Local tap: clock in (or back in after a checkout)."""

    student_id: int
    subteam: Optional[str] = Field(None, max_length=255)
    time: Optional[datetime] = None  # defaults to now


class ClockOutRequest(BaseModel):
    student_id: int
    subteam: Optional[str] = Field(None, max_length=255)
    time: Optional[datetime] = None
