from fastapi import APIRouter, Depends
from sqlalchemy import distinct, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import require_admin
from backend.database import get_db
from backend.models.appointment import STATUSES, Appointment
from backend.models.user import User
from backend.routes.appointment_routes import AppointmentResponse
from backend.routes.schemas import CamelModel, database_unavailable

router = APIRouter(prefix='/admin', tags=['admin'])

RECENT_APPOINTMENTS_LIMIT = 5


class AppointmentStatsResponse(CamelModel):
    total_appointments: int
    by_status: dict[str, int]
    unique_faculty: int
    unique_students: int
    recent_appointments: list[AppointmentResponse]


def collect_appointment_stats(db: Session) -> AppointmentStatsResponse:
    by_status = {appointment_status: 0 for appointment_status in STATUSES}
    for appointment_status, count in db.query(Appointment.status, func.count(Appointment.id)).group_by(Appointment.status):
        by_status[appointment_status] = count

    unique_faculty, unique_students = db.query(
        func.count(distinct(Appointment.faculty_id)),
        func.count(distinct(Appointment.student_id)),
    ).one()

    recent = db.query(Appointment).order_by(
        Appointment.created_at.desc(),
        Appointment.id.desc(),
    ).limit(RECENT_APPOINTMENTS_LIMIT).all()

    return AppointmentStatsResponse(
        total_appointments=sum(by_status.values()),
        by_status=by_status,
        unique_faculty=unique_faculty or 0,
        unique_students=unique_students or 0,
        recent_appointments=[AppointmentResponse.model_validate(appointment) for appointment in recent],
    )


@router.get('/stats', response_model=AppointmentStatsResponse)
def get_appointment_stats(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        return collect_appointment_stats(db)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc
