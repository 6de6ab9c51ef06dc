import logging

from sqlalchemy.orm import Session

from backend.auth.passwords import hash_password, verify_password
from backend.core.errors import ServiceError
from backend.models.user import User
from backend.services.booking import find_faculty

logger = logging.getLogger(__name__)

SELF_SERVICE_ROLES = ('student', 'faculty')


def normalize_email(email: str) -> str:
    return email.strip().lower()


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def register_user(
    db: Session,
    name: str,
    email: str,
    password: str,
    role: str = 'student',
    department: str | None = None,
    position: str | None = None,
    bio: str | None = None,
    allow_admin: bool = False,
) -> User:
    allowed_roles = SELF_SERVICE_ROLES + (('admin',) if allow_admin else ())
    if role not in allowed_roles:
        raise ServiceError.validation('Invalid role')

    if get_user_by_email(db, email) is not None:
        raise ServiceError.validation('User already exists')

    user = User(
        name=name.strip(),
        email=normalize_email(email),
        hashed_password=hash_password(password),
        role=role,
        profile_image='',
    )

    if role == 'faculty':
        if not department or not position:
            raise ServiceError.validation('Faculty users require department and position')
        user.department = department
        user.position = position
        user.bio = bio or ''

    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info('Registered %s user %s', role, user.id)
    return user


def authenticate(db: Session, email: str, password: str) -> User:
    user = get_user_by_email(db, email)
    if user is None or not verify_password(password, user.hashed_password):
        raise ServiceError.unauthorized('Invalid email or password')
    return user


def update_profile(db: Session, user: User, changes: dict) -> User:
    if changes.get('email'):
        email = normalize_email(changes['email'])
        existing = get_user_by_email(db, email)
        if existing is not None and existing.id != user.id:
            raise ServiceError.validation('User already exists')
        user.email = email

    if changes.get('name'):
        user.name = changes['name'].strip()
    if changes.get('password'):
        user.hashed_password = hash_password(changes['password'])
    if changes.get('profile_image'):
        user.profile_image = changes['profile_image']

    if user.is_faculty:
        for field in ('department', 'position', 'bio'):
            if changes.get(field):
                setattr(user, field, changes[field])

    db.commit()
    db.refresh(user)
    return user


def list_faculty(db: Session) -> list[User]:
    return db.query(User).filter(User.role == 'faculty').order_by(User.name.asc()).all()


def get_faculty(db: Session, faculty_id: int) -> User:
    return find_faculty(db, faculty_id)


def list_users(db: Session) -> list[User]:
    return db.query(User).order_by(User.id.asc()).all()
