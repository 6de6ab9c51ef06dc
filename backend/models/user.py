"""User model definitions."""

from sqlalchemy import Column, DateTime, Integer, String, Text

from backend.database import Base
from backend.models.timestamps import utc_naive_now

ROLES = ('student', 'faculty', 'admin')


class User(Base):
    """Represents an application user."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(String, nullable=False, default='student')  # student/faculty/admin
    department = Column(String)
    position = Column(String)
    bio = Column(Text)
    profile_image = Column(String, default='')
    created_at = Column(DateTime, default=utc_naive_now)

    @property
    def is_admin(self) -> bool:
        return self.role == 'admin'

    @property
    def is_faculty(self) -> bool:
        return self.role == 'faculty'

    @property
    def is_student(self) -> bool:
        return self.role == 'student'
