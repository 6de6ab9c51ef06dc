"""Appointment status lifecycle.

    pending  -> approved | rejected | canceled
    approved -> canceled | completed

rejected, canceled and completed are terminal. Approving, rejecting and
completing belong to the appointment's faculty member (or an admin);
either participant or an admin may cancel.
"""

import logging

from sqlalchemy.orm import Session

from backend.core.errors import ServiceError
from backend.models.appointment import (
    APPROVED,
    CANCELED,
    COMPLETED,
    PENDING,
    REJECTED,
    STATUSES,
    Appointment,
)
from backend.models.notification import APPOINTMENT_APPROVED, APPOINTMENT_CANCELED, APPOINTMENT_REJECTED
from backend.models.timestamps import utc_naive_now
from backend.models.user import User
from backend.services.clock import format_clock, format_date
from backend.services.notifications import emit_notification

logger = logging.getLogger(__name__)

TRANSITIONS = {
    PENDING: {APPROVED, REJECTED, CANCELED},
    APPROVED: {CANCELED, COMPLETED},
}
TERMINAL_STATUSES = {REJECTED, CANCELED, COMPLETED}


def get_appointment(db: Session, actor: User, appointment_id: int) -> Appointment:
    appointment = db.query(Appointment).filter(Appointment.id == appointment_id).first()
    if appointment is None:
        raise ServiceError.not_found('Appointment not found')

    if not (actor.is_admin or actor.id in (appointment.student_id, appointment.faculty_id)):
        raise ServiceError.unauthorized('Not authorized to view this appointment')
    return appointment


def list_appointments_for(db: Session, actor: User) -> list[Appointment]:
    query = db.query(Appointment)
    if actor.is_student:
        query = query.filter(Appointment.student_id == actor.id)
    elif actor.is_faculty:
        query = query.filter(Appointment.faculty_id == actor.id)
    elif not actor.is_admin:
        return []
    return query.order_by(Appointment.date.asc(), Appointment.start_time.asc()).all()


def _can_perform(actor: User, appointment: Appointment, target: str) -> bool:
    is_student = actor.id == appointment.student_id
    is_faculty = actor.id == appointment.faculty_id

    if target == CANCELED:
        return is_student or is_faculty or actor.is_admin
    return is_faculty or actor.is_admin


def _notification_for(actor: User, appointment: Appointment, target: str) -> tuple[int, str, str] | None:
    when = f'{format_date(appointment.date)} at {format_clock(appointment.start_time)}'

    if target in (APPROVED, REJECTED):
        notification_type = APPOINTMENT_APPROVED if target == APPROVED else APPOINTMENT_REJECTED
        return appointment.student_id, notification_type, f'Your appointment on {when} has been {target}'

    if target == CANCELED:
        recipient_id = appointment.faculty_id if actor.id == appointment.student_id else appointment.student_id
        return recipient_id, APPOINTMENT_CANCELED, f'The appointment on {when} has been canceled'

    return None


def update_appointment_status(
    db: Session,
    actor: User,
    appointment_id: int,
    status: str | None = None,
    notes: str | None = None,
    minutes_of_meeting: str | None = None,
) -> Appointment:
    appointment = db.query(Appointment).filter(Appointment.id == appointment_id).first()
    if appointment is None:
        raise ServiceError.not_found('Appointment not found')

    if not (actor.is_admin or actor.id in (appointment.student_id, appointment.faculty_id)):
        raise ServiceError.unauthorized('Not authorized to update this appointment')

    if minutes_of_meeting is not None:
        status = status or COMPLETED
        if status != COMPLETED:
            raise ServiceError.validation('Minutes of meeting can only be attached when completing an appointment')

    if status not in STATUSES:
        raise ServiceError.validation('Invalid status update')

    current = appointment.status
    if current in TERMINAL_STATUSES:
        raise ServiceError.validation(f'Appointment is already {current}')

    if status not in TRANSITIONS.get(current, set()):
        raise ServiceError.validation(f'Cannot change appointment from {current} to {status}')

    if not _can_perform(actor, appointment, status):
        raise ServiceError.unauthorized(f'Not authorized to mark this appointment as {status}')

    values = {
        Appointment.status: status,
        Appointment.updated_at: utc_naive_now(),
    }
    if notes:
        values[Appointment.notes] = notes
    if minutes_of_meeting is not None:
        values[Appointment.minutes_of_meeting] = minutes_of_meeting

    # Compare-and-set on the status read above.
    updated = db.query(Appointment).filter(
        Appointment.id == appointment.id,
        Appointment.status == current,
    ).update(values, synchronize_session=False)
    if updated == 0:
        db.rollback()
        raise ServiceError.validation('Appointment was updated by someone else, please reload it')

    notification = _notification_for(actor, appointment, status)
    if notification is not None:
        recipient_id, notification_type, content = notification
        emit_notification(
            db,
            recipient_id=recipient_id,
            sender_id=actor.id,
            notification_type=notification_type,
            content=content,
            appointment_id=appointment.id,
        )

    db.commit()
    db.refresh(appointment)
    logger.info('Appointment %s moved from %s to %s by user %s', appointment.id, current, status, actor.id)
    return appointment
