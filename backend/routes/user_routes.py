from fastapi import APIRouter, Depends, status
from pydantic import field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth import jwt_handler
from backend.auth.dependencies import get_current_user, require_admin
from backend.database import get_db
from backend.models.user import User
from backend.routes.schemas import CamelModel, database_unavailable
from backend.services import users as user_service

router = APIRouter(prefix='/users', tags=['users'])

MIN_PASSWORD_LENGTH = 8


def _validate_email(value: str) -> str:
    normalized = value.strip().lower()
    if '@' not in normalized or normalized.startswith('@') or normalized.endswith('@'):
        raise ValueError('A valid email address is required.')
    return normalized


class RegisterRequest(CamelModel):
    name: str
    email: str
    password: str
    role: str = 'student'
    department: str | None = None
    position: str | None = None
    bio: str | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Name is required.')
        return normalized

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        return _validate_email(value)

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        if len(value) < MIN_PASSWORD_LENGTH:
            raise ValueError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters.')
        return value

    @field_validator('role')
    @classmethod
    def validate_role(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in user_service.SELF_SERVICE_ROLES:
            raise ValueError('Role must be student or faculty.')
        return normalized


class LoginRequest(CamelModel):
    email: str
    password: str

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        return value.strip().lower()


class UpdateProfileRequest(CamelModel):
    name: str | None = None
    email: str | None = None
    password: str | None = None
    department: str | None = None
    position: str | None = None
    bio: str | None = None
    profile_image: str | None = None

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return _validate_email(value)

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str | None) -> str | None:
        if value is not None and len(value) < MIN_PASSWORD_LENGTH:
            raise ValueError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters.')
        return value


class UserResponse(CamelModel):
    id: int
    name: str
    email: str
    role: str
    department: str | None = None
    position: str | None = None
    bio: str | None = None
    profile_image: str | None = None


class AuthResponse(UserResponse):
    token: str


def _auth_response(user: User) -> AuthResponse:
    user_data = UserResponse.model_validate(user).model_dump()
    return AuthResponse(**user_data, token=jwt_handler.create_access_token(user.id, user.role))


@router.post('/register', response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register_user(data: RegisterRequest, db: Session = Depends(get_db)):
    try:
        user = user_service.register_user(
            db,
            name=data.name,
            email=data.email,
            password=data.password,
            role=data.role,
            department=data.department,
            position=data.position,
            bio=data.bio,
        )
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc

    return _auth_response(user)


@router.post('/login', response_model=AuthResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    try:
        user = user_service.authenticate(db, data.email, data.password)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    return _auth_response(user)


@router.get('/profile', response_model=UserResponse)
def get_profile(current_user: User = Depends(get_current_user)):
    return current_user


@router.put('/profile', response_model=AuthResponse)
def update_profile(
    data: UpdateProfileRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        user = user_service.update_profile(db, current_user, data.model_dump(exclude_unset=True))
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc

    return _auth_response(user)


@router.get('/faculty', response_model=list[UserResponse])
def list_faculty(db: Session = Depends(get_db)):
    try:
        return user_service.list_faculty(db)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('/faculty/{faculty_id}', response_model=UserResponse)
def get_faculty(faculty_id: int, db: Session = Depends(get_db)):
    try:
        return user_service.get_faculty(db, faculty_id)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


@router.get('', response_model=list[UserResponse])
def list_users(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        return user_service.list_users(db)
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc
