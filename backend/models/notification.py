"""Notification model definitions."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text

from backend.database import Base
from backend.models.timestamps import utc_naive_now

APPOINTMENT_REQUEST = 'appointment_request'
APPOINTMENT_APPROVED = 'appointment_approved'
APPOINTMENT_REJECTED = 'appointment_rejected'
APPOINTMENT_CANCELED = 'appointment_canceled'
SYSTEM = 'system'

NOTIFICATION_TYPES = (
    APPOINTMENT_REQUEST,
    APPOINTMENT_APPROVED,
    APPOINTMENT_REJECTED,
    APPOINTMENT_CANCELED,
    SYSTEM,
)


class Notification(Base):
    """Represents a one-way alert addressed to a user."""
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True)
    recipient_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    sender_id = Column(Integer, ForeignKey("users.id"))
    type = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    read = Column(Boolean, nullable=False, default=False)
    appointment_id = Column(Integer, ForeignKey("appointments.id"))
    created_at = Column(DateTime, default=utc_naive_now)
