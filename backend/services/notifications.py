import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from backend.core.errors import ServiceError
from backend.models.notification import Notification
from backend.models.user import User

logger = logging.getLogger(__name__)


def emit_notification(
    db: Session,
    recipient_id: int,
    notification_type: str,
    content: str,
    sender_id: int | None = None,
    appointment_id: int | None = None,
) -> Notification:
    """Stage a notification in the caller's transaction; the caller commits."""
    notification = Notification(
        recipient_id=recipient_id,
        sender_id=sender_id,
        type=notification_type,
        content=content,
        read=False,
        appointment_id=appointment_id,
    )
    db.add(notification)
    logger.debug('Queued %s notification for user %s', notification_type, recipient_id)
    return notification


def list_notifications(db: Session, user: User) -> list[Notification]:
    return db.query(Notification).filter(
        Notification.recipient_id == user.id,
    ).order_by(Notification.created_at.desc(), Notification.id.desc()).all()


def unread_count(db: Session, user: User) -> int:
    return db.query(func.count(Notification.id)).filter(
        Notification.recipient_id == user.id,
        Notification.read.is_(False),
    ).scalar() or 0


def mark_as_read(db: Session, user: User, notification_id: int) -> Notification:
    notification = db.query(Notification).filter(Notification.id == notification_id).first()
    if notification is None:
        raise ServiceError.not_found('Notification not found')

    if notification.recipient_id != user.id:
        raise ServiceError.unauthorized('Not authorized')

    notification.read = True
    db.commit()
    db.refresh(notification)
    return notification


def mark_all_as_read(db: Session, user: User) -> int:
    updated = db.query(Notification).filter(
        Notification.recipient_id == user.id,
        Notification.read.is_(False),
    ).update({Notification.read: True}, synchronize_session=False)
    db.commit()
    return updated
