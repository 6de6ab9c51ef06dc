"""Appointment model definitions."""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Text, Time

from backend.database import Base
from backend.models.timestamps import utc_naive_now

PENDING = 'pending'
APPROVED = 'approved'
REJECTED = 'rejected'
CANCELED = 'canceled'
COMPLETED = 'completed'

STATUSES = (PENDING, APPROVED, REJECTED, CANCELED, COMPLETED)
# Appointments in these states hold the faculty member's time.
ACTIVE_STATUSES = (PENDING, APPROVED)


class Appointment(Base):
    """Represents a meeting requested by a student with a faculty member."""
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True)
    student_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    faculty_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    status = Column(String, nullable=False, default=PENDING)
    reason = Column(Text, nullable=False)
    notes = Column(Text)
    minutes_of_meeting = Column(Text)
    created_at = Column(DateTime, default=utc_naive_now)
    updated_at = Column(DateTime, default=utc_naive_now, onupdate=utc_naive_now)
