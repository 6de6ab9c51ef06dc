from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import get_current_user
from backend.database import get_db
from backend.models.user import User
from backend.routes.schemas import CamelModel, database_unavailable
from backend.services import notifications as notification_service

router = APIRouter(prefix='/notifications', tags=['notifications'])


class NotificationResponse(CamelModel):
    id: int
    recipient_id: int
    sender_id: int | None = None
    type: str
    content: str
    read: bool
    appointment_id: int | None = None
    created_at: datetime | None = None


@router.get('', response_model=list[NotificationResponse])
def list_my_notifications(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return notification_service.list_notifications(db, current_user)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/unread-count')
def get_unread_count(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return {'unread': notification_service.unread_count(db, current_user)}
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.put('/read-all')
def mark_all_notifications_as_read(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        updated = notification_service.mark_all_as_read(db, current_user)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc

    return {'message': 'All notifications marked as read', 'updated': updated}


@router.put('/{notification_id}', response_model=NotificationResponse)
def mark_notification_as_read(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return notification_service.mark_as_read(db, current_user, notification_id)
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc
