"""Availability model definitions."""

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, String, Time

from backend.database import Base
from backend.models.timestamps import utc_naive_now

DAYS_OF_WEEK = ('Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday')
APPOINTMENT_KINDS = ('in-person', 'virtual')


class Availability(Base):
    """Represents a window in which a faculty member accepts appointments."""
    __tablename__ = "availability"

    id = Column(Integer, primary_key=True)
    faculty_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    day_of_week = Column(String, nullable=False)
    date = Column(Date)  # only for non-recurring slots
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_recurring = Column(Boolean, nullable=False, default=True)
    appointment_kind = Column(String, nullable=False, default='in-person')
    location = Column(String)
    created_at = Column(DateTime, default=utc_naive_now)
