import logging
from datetime import date, time

from sqlalchemy.orm import Session

from backend.core.errors import ServiceError
from backend.models.availability import APPOINTMENT_KINDS, Availability
from backend.models.user import User
from backend.services.booking import find_faculty
from backend.services.clock import day_of_week_for, normalize_day_of_week

logger = logging.getLogger(__name__)


def _validated_fields(
    day_of_week: str | None,
    slot_date: date | None,
    start_time: time | None,
    end_time: time | None,
    is_recurring: bool,
    appointment_kind: str,
    location: str | None,
) -> dict:
    if start_time is None or end_time is None:
        raise ServiceError.validation('Please provide day, start time and end time')

    if start_time >= end_time:
        raise ServiceError.validation('Start time must be before end time')

    if day_of_week:
        try:
            day_of_week = normalize_day_of_week(day_of_week)
        except ValueError as exc:
            raise ServiceError.validation(str(exc)) from exc

    if is_recurring:
        if not day_of_week:
            raise ServiceError.validation('Day of week is required for recurring availability')
        slot_date = None
    else:
        if slot_date is None:
            raise ServiceError.validation('Date is required for non-recurring availability')
        derived_day = day_of_week_for(slot_date)
        if day_of_week and day_of_week != derived_day:
            raise ServiceError.validation(f'{slot_date.isoformat()} is a {derived_day}, not a {day_of_week}')
        day_of_week = derived_day

    if appointment_kind not in APPOINTMENT_KINDS:
        raise ServiceError.validation('Appointment type must be in-person or virtual')

    location = (location or '').strip() or None

    return {
        'day_of_week': day_of_week,
        'date': slot_date,
        'start_time': start_time,
        'end_time': end_time,
        'is_recurring': is_recurring,
        'appointment_kind': appointment_kind,
        'location': location,
    }


def _get_owned_slot(db: Session, actor: User, slot_id: int, action: str) -> Availability:
    slot = db.query(Availability).filter(Availability.id == slot_id).first()
    if slot is None:
        raise ServiceError.not_found('Availability not found')

    if slot.faculty_id != actor.id and not actor.is_admin:
        raise ServiceError.unauthorized(f'Not authorized to {action} this availability')
    return slot


def create_availability(
    db: Session,
    actor: User,
    start_time: time | None,
    end_time: time | None,
    day_of_week: str | None = None,
    is_recurring: bool = True,
    slot_date: date | None = None,
    appointment_kind: str = 'in-person',
    location: str | None = None,
) -> Availability:
    if not actor.is_faculty:
        raise ServiceError.unauthorized('Only faculty can create availability')

    fields = _validated_fields(day_of_week, slot_date, start_time, end_time, is_recurring, appointment_kind, location)
    slot = Availability(faculty_id=actor.id, **fields)
    db.add(slot)
    db.commit()
    db.refresh(slot)

    logger.info('Faculty %s added availability %s (%s)', actor.id, slot.id, slot.day_of_week)
    return slot


def list_for_faculty(db: Session, faculty_id: int) -> list[Availability]:
    find_faculty(db, faculty_id)
    return db.query(Availability).filter(
        Availability.faculty_id == faculty_id,
    ).order_by(Availability.id.asc()).all()


def list_mine(db: Session, actor: User) -> list[Availability]:
    if not actor.is_faculty:
        raise ServiceError.unauthorized('Only faculty can access their availability')
    return db.query(Availability).filter(
        Availability.faculty_id == actor.id,
    ).order_by(Availability.id.asc()).all()


def update_availability(db: Session, actor: User, slot_id: int, changes: dict) -> Availability:
    """Apply a partial update; keys absent from ``changes`` keep their stored value."""
    slot = _get_owned_slot(db, actor, slot_id, 'update')

    is_recurring = changes.get('is_recurring')
    if is_recurring is None:
        is_recurring = slot.is_recurring

    # Dated slots take their weekday from the date unless one is given explicitly.
    day_of_week = changes.get('day_of_week')
    if day_of_week is None and is_recurring:
        day_of_week = slot.day_of_week

    fields = _validated_fields(
        day_of_week=day_of_week,
        slot_date=changes.get('date') or slot.date,
        start_time=changes.get('start_time') or slot.start_time,
        end_time=changes.get('end_time') or slot.end_time,
        is_recurring=is_recurring,
        appointment_kind=changes.get('appointment_kind') or slot.appointment_kind,
        location=changes['location'] if 'location' in changes else slot.location,
    )

    for name, value in fields.items():
        setattr(slot, name, value)

    db.commit()
    db.refresh(slot)
    return slot


def delete_availability(db: Session, actor: User, slot_id: int) -> None:
    slot = _get_owned_slot(db, actor, slot_id, 'delete')
    db.delete(slot)
    db.commit()
    logger.info('User %s removed availability %s', actor.id, slot_id)
