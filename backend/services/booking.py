"""Appointment booking.

A booking request is accepted only when the faculty member has no pending or
approved appointment overlapping the requested window on that date, and the
window sits entirely inside one of the faculty member's availability slots
for that day.

The final write is a single ``INSERT ... SELECT ... WHERE NOT EXISTS`` so the
overlap rule is enforced by the database statement itself, not only by the
read that precedes it. On Postgres the faculty row is also locked for the
duration of the transaction, which serialises concurrent bookings for one
faculty member.
"""

import logging
from datetime import date, time

from sqlalchemy import Date, DateTime, Integer, String, Text, Time, and_, insert, literal, or_, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, aliased

from backend.core import config
from backend.core.errors import ServiceError
from backend.models.appointment import ACTIVE_STATUSES, PENDING, Appointment
from backend.models.availability import Availability
from backend.models.notification import APPOINTMENT_REQUEST
from backend.models.timestamps import utc_naive_now
from backend.models.user import User
from backend.services.clock import day_of_week_for, format_clock, format_date
from backend.services.notifications import emit_notification

logger = logging.getLogger(__name__)

CONFLICT_MESSAGE = 'The faculty member already has an appointment at this time'
OUTSIDE_AVAILABILITY_MESSAGE = 'The selected time is not within faculty availability'

_INSERT_COLUMNS = [
    'student_id',
    'faculty_id',
    'date',
    'start_time',
    'end_time',
    'status',
    'reason',
    'created_at',
    'updated_at',
]


def overlap_condition(appointment, start_time: time, end_time: time):
    """Overlap test against an Appointment entity or alias; touching windows count unless back-to-back is allowed."""
    if config.ALLOW_BACK_TO_BACK_BOOKINGS:
        return and_(appointment.start_time < end_time, appointment.end_time > start_time)
    return and_(appointment.start_time <= end_time, appointment.end_time >= start_time)


def find_faculty(db: Session, faculty_id: int, lock: bool = False) -> User:
    query = db.query(User).filter(User.id == faculty_id, User.role == 'faculty')
    if lock:
        query = query.with_for_update()

    faculty = query.first()
    if faculty is None:
        raise ServiceError.not_found('Faculty member not found')
    return faculty


def find_conflicting_appointment(
    db: Session,
    faculty_id: int,
    appointment_date: date,
    start_time: time,
    end_time: time,
) -> Appointment | None:
    return db.query(Appointment).filter(
        Appointment.faculty_id == faculty_id,
        Appointment.date == appointment_date,
        Appointment.status.in_(ACTIVE_STATUSES),
        overlap_condition(Appointment, start_time, end_time),
    ).first()


def find_covering_availability(
    db: Session,
    faculty_id: int,
    appointment_date: date,
    start_time: time,
    end_time: time,
) -> Availability | None:
    return db.query(Availability).filter(
        Availability.faculty_id == faculty_id,
        or_(
            and_(
                Availability.is_recurring.is_(True),
                Availability.day_of_week == day_of_week_for(appointment_date),
            ),
            and_(
                Availability.is_recurring.is_(False),
                Availability.date == appointment_date,
            ),
        ),
        Availability.start_time <= start_time,
        Availability.end_time >= end_time,
    ).order_by(Availability.id.asc()).first()


def _insert_if_free(
    db: Session,
    student_id: int,
    faculty_id: int,
    appointment_date: date,
    start_time: time,
    end_time: time,
    reason: str,
) -> int | None:
    """Insert a pending appointment unless an active one overlaps; returns the new id."""
    existing = aliased(Appointment)
    now = utc_naive_now()

    window_is_free = ~select(existing.id).where(
        existing.faculty_id == faculty_id,
        existing.date == appointment_date,
        existing.status.in_(ACTIVE_STATUSES),
        overlap_condition(existing, start_time, end_time),
    ).exists()

    candidate_row = select(
        literal(student_id, Integer),
        literal(faculty_id, Integer),
        literal(appointment_date, Date),
        literal(start_time, Time),
        literal(end_time, Time),
        literal(PENDING, String),
        literal(reason, Text),
        literal(now, DateTime),
        literal(now, DateTime),
    ).where(window_is_free)

    appointments = Appointment.__table__
    statement = insert(appointments).from_select(_INSERT_COLUMNS, candidate_row).returning(appointments.c.id)
    return db.execute(statement).scalar_one_or_none()


def _book(
    db: Session,
    student: User,
    faculty_id: int,
    appointment_date: date,
    start_time: time,
    end_time: time,
    reason: str,
) -> Appointment:
    faculty = find_faculty(db, faculty_id, lock=True)

    if not reason:
        raise ServiceError.validation('Please provide a reason for the appointment')

    if start_time >= end_time:
        raise ServiceError.validation('Start time must be before end time')

    if find_conflicting_appointment(db, faculty.id, appointment_date, start_time, end_time):
        raise ServiceError.validation(CONFLICT_MESSAGE)

    if find_covering_availability(db, faculty.id, appointment_date, start_time, end_time) is None:
        raise ServiceError.validation(OUTSIDE_AVAILABILITY_MESSAGE)

    appointment_id = _insert_if_free(
        db,
        student_id=student.id,
        faculty_id=faculty.id,
        appointment_date=appointment_date,
        start_time=start_time,
        end_time=end_time,
        reason=reason,
    )
    if appointment_id is None:
        # Another request booked an overlapping window after our read.
        raise ServiceError.validation(CONFLICT_MESSAGE)

    emit_notification(
        db,
        recipient_id=faculty.id,
        sender_id=student.id,
        notification_type=APPOINTMENT_REQUEST,
        content=(
            f'{student.name} has requested an appointment on '
            f'{format_date(appointment_date)} at {format_clock(start_time)}'
        ),
        appointment_id=appointment_id,
    )
    return db.get(Appointment, appointment_id)


def create_appointment(
    db: Session,
    student: User,
    faculty_id: int,
    appointment_date: date,
    start_time: time,
    end_time: time,
    reason: str,
) -> Appointment:
    if not student.is_student:
        raise ServiceError.unauthorized('Only students can request appointments')

    reason = (reason or '').strip()

    attempts = config.BOOKING_MAX_RETRIES
    for attempt in range(1, attempts + 1):
        try:
            appointment = _book(db, student, faculty_id, appointment_date, start_time, end_time, reason)
            db.commit()
        except ServiceError as exc:
            db.rollback()
            logger.info(
                'Rejected booking by student %s with faculty %s on %s %s-%s: %s',
                student.id,
                faculty_id,
                appointment_date,
                format_clock(start_time),
                format_clock(end_time),
                exc.message,
            )
            raise
        except OperationalError:
            db.rollback()
            if attempt == attempts:
                raise
            logger.warning(
                'Booking attempt %d/%d for faculty %s hit a transient database error; retrying',
                attempt,
                attempts,
                faculty_id,
            )
            continue

        db.refresh(appointment)
        logger.info(
            'Booked appointment %s for student %s with faculty %s on %s %s-%s',
            appointment.id,
            student.id,
            faculty_id,
            appointment_date,
            format_clock(start_time),
            format_clock(end_time),
        )
        return appointment
