import os
from datetime import date, time

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')
os.environ.setdefault('JWT_SECRET_KEY', 'test-secret')

from backend.database import Base  # noqa: E402
from backend.models.appointment import Appointment  # noqa: E402
from backend.models.availability import Availability  # noqa: E402
from backend.models.notification import Notification  # noqa: E402, F401
from backend.models.user import User  # noqa: E402
from backend.services import booking  # noqa: E402

# 2026-01-05 is a Monday.
MONDAY = date(2026, 1, 5)
TUESDAY = date(2026, 1, 6)
NEXT_MONDAY = date(2026, 1, 12)


@pytest.fixture
def db_engine():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    counter = {'value': 0}

    def _make_user(role: str = 'student', name: str | None = None, **fields) -> User:
        counter['value'] += 1
        number = counter['value']
        user = User(
            name=name or f'{role.title()} {number}',
            email=fields.pop('email', f'{role}{number}@university.edu'),
            hashed_password='unused',
            role=role,
            **fields,
        )
        if role == 'faculty':
            user.department = user.department or 'Computer Science'
            user.position = user.position or 'Professor'
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def student(make_user) -> User:
    return make_user('student', name='Ada Student')


@pytest.fixture
def other_student(make_user) -> User:
    return make_user('student', name='Grace Student')


@pytest.fixture
def faculty(make_user) -> User:
    return make_user('faculty', name='Alan Faculty')


@pytest.fixture
def admin(make_user) -> User:
    return make_user('admin', name='Registrar')


@pytest.fixture
def make_slot(db):
    def _make_slot(
        faculty: User,
        start: time,
        end: time,
        day_of_week: str = 'Monday',
        is_recurring: bool = True,
        slot_date: date | None = None,
        appointment_kind: str = 'in-person',
        location: str | None = 'Room 1',
    ) -> Availability:
        slot = Availability(
            faculty_id=faculty.id,
            day_of_week=day_of_week,
            date=slot_date,
            start_time=start,
            end_time=end,
            is_recurring=is_recurring,
            appointment_kind=appointment_kind,
            location=location,
        )
        db.add(slot)
        db.commit()
        db.refresh(slot)
        return slot

    return _make_slot


@pytest.fixture
def make_appointment(db):
    def _make_appointment(
        student: User,
        faculty: User,
        start: time,
        end: time,
        appointment_date: date = MONDAY,
        status: str = 'pending',
        reason: str = 'Office hours question',
    ) -> Appointment:
        appointment = Appointment(
            student_id=student.id,
            faculty_id=faculty.id,
            date=appointment_date,
            start_time=start,
            end_time=end,
            status=status,
            reason=reason,
        )
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment

    return _make_appointment


@pytest.fixture
def monday() -> date:
    return MONDAY


@pytest.fixture
def tuesday() -> date:
    return TUESDAY


@pytest.fixture
def next_monday() -> date:
    return NEXT_MONDAY


@pytest.fixture
def book(db):
    def _book(
        student: User,
        faculty: User,
        start: time,
        end: time,
        appointment_date: date = MONDAY,
        reason: str = 'Project feedback',
    ) -> Appointment:
        return booking.create_appointment(
            db,
            student=student,
            faculty_id=faculty.id,
            appointment_date=appointment_date,
            start_time=start,
            end_time=end,
            reason=reason,
        )

    return _book
