from datetime import time

import pytest

from backend.core.errors import ErrorKind, ServiceError
from backend.models.appointment import Appointment
from backend.models.notification import Notification
from backend.services.status import get_appointment, list_appointments_for, update_appointment_status


@pytest.fixture
def pending(student, faculty, make_appointment) -> Appointment:
    return make_appointment(student, faculty, time(9, 15), time(9, 45))


@pytest.fixture
def approved(student, faculty, make_appointment) -> Appointment:
    return make_appointment(student, faculty, time(10, 0), time(10, 30), status='approved')


def _notifications(db) -> list[Notification]:
    return db.query(Notification).order_by(Notification.id.asc()).all()


def test_faculty_approval_notifies_student_once(db, student, faculty, pending) -> None:
    updated = update_appointment_status(db, faculty, pending.id, status='approved')

    assert updated.status == 'approved'
    notifications = _notifications(db)
    assert len(notifications) == 1
    assert notifications[0].recipient_id == student.id
    assert notifications[0].sender_id == faculty.id
    assert notifications[0].type == 'appointment_approved'
    assert notifications[0].appointment_id == pending.id
    assert notifications[0].content == 'Your appointment on 1/5/2026 at 09:15 has been approved'


def test_admin_can_reject_with_notes(db, student, admin, pending) -> None:
    updated = update_appointment_status(db, admin, pending.id, status='rejected', notes='Please book a longer slot')

    assert updated.status == 'rejected'
    assert updated.notes == 'Please book a longer slot'
    notifications = _notifications(db)
    assert [(n.recipient_id, n.type) for n in notifications] == [(student.id, 'appointment_rejected')]


def test_student_cannot_approve_own_request(db, student, pending) -> None:
    with pytest.raises(ServiceError) as exception_info:
        update_appointment_status(db, student, pending.id, status='approved')

    assert exception_info.value.kind == ErrorKind.UNAUTHORIZED
    db.refresh(pending)
    assert pending.status == 'pending'
    assert _notifications(db) == []


def test_unrelated_faculty_cannot_touch_the_appointment(db, make_user, pending) -> None:
    stranger = make_user('faculty')

    with pytest.raises(ServiceError) as exception_info:
        update_appointment_status(db, stranger, pending.id, status='canceled')

    assert exception_info.value.kind == ErrorKind.UNAUTHORIZED
    assert exception_info.value.message == 'Not authorized to update this appointment'


def test_student_cancel_of_approved_notifies_faculty_and_second_cancel_is_rejected(
    db,
    student,
    faculty,
    approved,
) -> None:
    updated = update_appointment_status(db, student, approved.id, status='canceled')

    assert updated.status == 'canceled'
    notifications = _notifications(db)
    assert len(notifications) == 1
    assert notifications[0].recipient_id == faculty.id
    assert notifications[0].type == 'appointment_canceled'

    with pytest.raises(ServiceError) as exception_info:
        update_appointment_status(db, student, approved.id, status='canceled')

    assert exception_info.value.kind == ErrorKind.VALIDATION
    assert exception_info.value.message == 'Appointment is already canceled'
    db.refresh(approved)
    assert approved.status == 'canceled'
    assert len(_notifications(db)) == 1


@pytest.mark.parametrize('canceller', ['faculty', 'admin'])
def test_cancel_by_faculty_or_admin_notifies_student(db, student, faculty, admin, pending, canceller: str) -> None:
    actor = faculty if canceller == 'faculty' else admin

    update_appointment_status(db, actor, pending.id, status='canceled')

    notifications = _notifications(db)
    assert len(notifications) == 1
    assert notifications[0].recipient_id == student.id


def test_complete_with_minutes_persists_text_and_status(db, faculty, approved) -> None:
    updated = update_appointment_status(
        db,
        faculty,
        approved.id,
        status='completed',
        minutes_of_meeting='Discussed thesis outline; next check-in in two weeks.',
    )

    assert updated.status == 'completed'
    assert updated.minutes_of_meeting == 'Discussed thesis outline; next check-in in two weeks.'
    assert _notifications(db) == []

    stored = db.query(Appointment).filter(Appointment.id == approved.id).one()
    assert stored.status == 'completed'
    assert stored.minutes_of_meeting is not None


def test_minutes_without_status_imply_completion(db, faculty, approved) -> None:
    updated = update_appointment_status(db, faculty, approved.id, minutes_of_meeting='Reviewed draft.')

    assert updated.status == 'completed'
    assert updated.minutes_of_meeting == 'Reviewed draft.'


def test_minutes_cannot_accompany_other_statuses(db, faculty, approved) -> None:
    with pytest.raises(ServiceError) as exception_info:
        update_appointment_status(db, faculty, approved.id, status='canceled', minutes_of_meeting='Notes')

    assert exception_info.value.kind == ErrorKind.VALIDATION
    db.refresh(approved)
    assert approved.status == 'approved'


def test_pending_cannot_be_completed(db, faculty, pending) -> None:
    with pytest.raises(ServiceError) as exception_info:
        update_appointment_status(db, faculty, pending.id, status='completed')

    assert exception_info.value.message == 'Cannot change appointment from pending to completed'


def test_student_cannot_complete(db, student, approved) -> None:
    with pytest.raises(ServiceError) as exception_info:
        update_appointment_status(db, student, approved.id, status='completed')

    assert exception_info.value.kind == ErrorKind.UNAUTHORIZED


@pytest.mark.parametrize('terminal', ['rejected', 'canceled', 'completed'])
def test_terminal_states_accept_no_transition(db, student, faculty, make_appointment, terminal: str) -> None:
    appointment = make_appointment(student, faculty, time(13, 0), time(13, 30), status=terminal)

    with pytest.raises(ServiceError) as exception_info:
        update_appointment_status(db, faculty, appointment.id, status='approved')

    assert exception_info.value.kind == ErrorKind.VALIDATION
    db.refresh(appointment)
    assert appointment.status == terminal


@pytest.mark.parametrize('bad_status', ['archived', None, 'pending'])
def test_unknown_or_unreachable_status_is_invalid(db, faculty, pending, bad_status) -> None:
    with pytest.raises(ServiceError) as exception_info:
        update_appointment_status(db, faculty, pending.id, status=bad_status)

    assert exception_info.value.kind == ErrorKind.VALIDATION


def test_missing_appointment_is_not_found(db, faculty) -> None:
    with pytest.raises(ServiceError) as exception_info:
        update_appointment_status(db, faculty, 404, status='approved')

    assert exception_info.value.kind == ErrorKind.NOT_FOUND


def test_concurrent_status_change_is_detected(db, faculty, student, pending) -> None:
    # Another writer cancels the row; this session still holds the stale 'pending' copy.
    db.query(Appointment).filter(Appointment.id == pending.id).update(
        {Appointment.status: 'canceled'},
        synchronize_session=False,
    )

    with pytest.raises(ServiceError) as exception_info:
        update_appointment_status(db, faculty, pending.id, status='approved')

    assert exception_info.value.kind == ErrorKind.VALIDATION
    assert exception_info.value.message == 'Appointment was updated by someone else, please reload it'
    assert _notifications(db) == []


def test_get_appointment_is_limited_to_participants_and_admins(db, student, other_student, faculty, admin, pending) -> None:
    assert get_appointment(db, student, pending.id).id == pending.id
    assert get_appointment(db, faculty, pending.id).id == pending.id
    assert get_appointment(db, admin, pending.id).id == pending.id

    with pytest.raises(ServiceError) as exception_info:
        get_appointment(db, other_student, pending.id)
    assert exception_info.value.kind == ErrorKind.UNAUTHORIZED


def test_list_appointments_is_scoped_by_role(db, make_user, make_appointment, admin) -> None:
    first_student, second_student = make_user('student'), make_user('student')
    first_faculty, second_faculty = make_user('faculty'), make_user('faculty')
    a = make_appointment(first_student, first_faculty, time(11, 0), time(11, 30))
    b = make_appointment(second_student, first_faculty, time(9, 0), time(9, 30))
    c = make_appointment(first_student, second_faculty, time(10, 0), time(10, 30))

    assert [x.id for x in list_appointments_for(db, first_student)] == [c.id, a.id]
    assert [x.id for x in list_appointments_for(db, first_faculty)] == [b.id, a.id]
    assert [x.id for x in list_appointments_for(db, admin)] == [b.id, c.id, a.id]
