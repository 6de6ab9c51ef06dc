from datetime import date, datetime

from fastapi import APIRouter, Depends, status
from pydantic import Field, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import get_current_user
from backend.database import get_db
from backend.models.user import User
from backend.routes.schemas import CamelModel, ClockTime, database_unavailable
from backend.services import booking
from backend.services import status as appointment_status

router = APIRouter(prefix='/appointments', tags=['appointments'])

MAX_REASON_LENGTH = 1000


class CreateAppointmentRequest(CamelModel):
    faculty_id: int = Field(alias='faculty')
    date: date
    start_time: ClockTime
    end_time: ClockTime
    reason: str

    @field_validator('reason')
    @classmethod
    def validate_reason(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Please provide a reason for the appointment.')
        if len(normalized) > MAX_REASON_LENGTH:
            raise ValueError(f'Reason must be {MAX_REASON_LENGTH} characters or fewer.')
        return normalized


class UpdateAppointmentRequest(CamelModel):
    status: str | None = None
    notes: str | None = None
    minutes_of_meeting: str | None = None

    @field_validator('status')
    @classmethod
    def validate_status(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip().lower()

    @field_validator('notes', 'minutes_of_meeting')
    @classmethod
    def strip_text(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None


class AppointmentResponse(CamelModel):
    id: int
    student_id: int
    faculty_id: int
    date: date
    start_time: ClockTime
    end_time: ClockTime
    status: str
    reason: str
    notes: str | None = None
    minutes_of_meeting: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@router.post('', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(
    data: CreateAppointmentRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return booking.create_appointment(
            db,
            student=current_user,
            faculty_id=data.faculty_id,
            appointment_date=data.date,
            start_time=data.start_time,
            end_time=data.end_time,
            reason=data.reason,
        )
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc


@router.get('/me', response_model=list[AppointmentResponse])
def list_my_appointments(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return appointment_status.list_appointments_for(db, current_user)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/{appointment_id}', response_model=AppointmentResponse)
def get_appointment(
    appointment_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return appointment_status.get_appointment(db, current_user, appointment_id)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.put('/{appointment_id}', response_model=AppointmentResponse)
def update_appointment(
    appointment_id: int,
    data: UpdateAppointmentRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return appointment_status.update_appointment_status(
            db,
            actor=current_user,
            appointment_id=appointment_id,
            status=data.status,
            notes=data.notes,
            minutes_of_meeting=data.minutes_of_meeting,
        )
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc
