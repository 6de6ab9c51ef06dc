from datetime import date

from fastapi import APIRouter, Depends, status
from pydantic import Field, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import get_current_user
from backend.database import get_db
from backend.models.availability import APPOINTMENT_KINDS
from backend.models.user import User
from backend.routes.schemas import CamelModel, ClockTime, database_unavailable
from backend.services import availability as availability_service

router = APIRouter(prefix='/availability', tags=['availability'])


def _normalize_kind(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip().lower().replace('_', '-')
    if normalized not in APPOINTMENT_KINDS:
        raise ValueError('Appointment type must be in-person or virtual.')
    return normalized


class CreateAvailabilityRequest(CamelModel):
    day_of_week: str | None = None
    start_time: ClockTime
    end_time: ClockTime
    is_recurring: bool = True
    slot_date: date | None = Field(default=None, alias='date')
    type: str = 'in-person'
    location: str | None = None

    @field_validator('type')
    @classmethod
    def validate_type(cls, value: str) -> str:
        return _normalize_kind(value)


class UpdateAvailabilityRequest(CamelModel):
    day_of_week: str | None = None
    start_time: ClockTime | None = None
    end_time: ClockTime | None = None
    is_recurring: bool | None = None
    slot_date: date | None = Field(default=None, alias='date')
    type: str | None = None
    location: str | None = None

    @field_validator('type')
    @classmethod
    def validate_type(cls, value: str | None) -> str | None:
        return _normalize_kind(value)


class AvailabilityResponse(CamelModel):
    id: int
    faculty_id: int
    day_of_week: str
    slot_date: date | None = Field(default=None, alias='date')
    start_time: ClockTime
    end_time: ClockTime
    is_recurring: bool
    type: str
    location: str | None = None

    @classmethod
    def from_slot(cls, slot) -> 'AvailabilityResponse':
        return cls(
            id=slot.id,
            faculty_id=slot.faculty_id,
            day_of_week=slot.day_of_week,
            slot_date=slot.date,
            start_time=slot.start_time,
            end_time=slot.end_time,
            is_recurring=slot.is_recurring,
            type=slot.appointment_kind,
            location=slot.location,
        )


@router.post('', response_model=AvailabilityResponse, status_code=status.HTTP_201_CREATED)
def create_availability(
    data: CreateAvailabilityRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        slot = availability_service.create_availability(
            db,
            actor=current_user,
            day_of_week=data.day_of_week,
            start_time=data.start_time,
            end_time=data.end_time,
            is_recurring=data.is_recurring,
            slot_date=data.slot_date,
            appointment_kind=data.type,
            location=data.location,
        )
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc

    return AvailabilityResponse.from_slot(slot)


@router.get('/me', response_model=list[AvailabilityResponse])
def list_my_availability(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        slots = availability_service.list_mine(db, current_user)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    return [AvailabilityResponse.from_slot(slot) for slot in slots]


@router.get('/faculty/{faculty_id}', response_model=list[AvailabilityResponse])
def list_faculty_availability(faculty_id: int, db: Session = Depends(get_db)):
    try:
        slots = availability_service.list_for_faculty(db, faculty_id)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    return [AvailabilityResponse.from_slot(slot) for slot in slots]


@router.put('/{slot_id}', response_model=AvailabilityResponse)
def update_availability(
    slot_id: int,
    data: UpdateAvailabilityRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    field_names = {'type': 'appointment_kind', 'slot_date': 'date'}
    changes = {field_names.get(name, name): getattr(data, name) for name in data.model_fields_set}

    try:
        slot = availability_service.update_availability(db, current_user, slot_id, changes)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc

    return AvailabilityResponse.from_slot(slot)


@router.delete('/{slot_id}')
def delete_availability(
    slot_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        availability_service.delete_availability(db, current_user, slot_id)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc

    return {'message': 'Availability removed'}
