import os

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]

APP_ENV = os.getenv("APP_ENV", "development")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./office_hours.db")

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "60"))

CORS_ORIGINS = _get_list(os.getenv("CORS_ORIGINS", "http://localhost:5173"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Booking
BOOKING_MAX_RETRIES = int(os.getenv("BOOKING_MAX_RETRIES", "3"))
ALLOW_BACK_TO_BACK_BOOKINGS = _get_bool(os.getenv("ALLOW_BACK_TO_BACK_BOOKINGS"), default=False)


def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    if BOOKING_MAX_RETRIES < 1:
        raise RuntimeError("BOOKING_MAX_RETRIES must be at least 1.")
