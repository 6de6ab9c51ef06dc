from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from backend.core import config


def _connect_args(database_url: str) -> dict:
    if database_url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    config.DATABASE_URL,
    connect_args=_connect_args(config.DATABASE_URL),
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_schema_checked = False

# Columns added after the first release; older databases get them on startup.
SCHEMA_MIGRATIONS = {
    'appointments': [
        ('minutes_of_meeting', 'ALTER TABLE appointments ADD COLUMN minutes_of_meeting TEXT'),
        ('updated_at', 'ALTER TABLE appointments ADD COLUMN updated_at TIMESTAMP'),
    ],
    'availability': [
        ('appointment_kind', "ALTER TABLE availability ADD COLUMN appointment_kind VARCHAR DEFAULT 'in-person'"),
        ('location', 'ALTER TABLE availability ADD COLUMN location VARCHAR'),
    ],
}

SCHEMA_INDEXES = [
    'CREATE INDEX IF NOT EXISTS idx_appointments_faculty_date ON appointments(faculty_id, date, status)',
    'CREATE INDEX IF NOT EXISTS idx_availability_faculty_day ON availability(faculty_id, day_of_week)',
    'CREATE INDEX IF NOT EXISTS idx_notifications_recipient_read ON notifications(recipient_id, read)',
]


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_schema(bind=None) -> None:
    global _schema_checked

    if _schema_checked:
        return

    bind = bind or engine

    with _schema_lock:
        if _schema_checked:
            return

        inspector = inspect(bind)
        table_names = set(inspector.get_table_names())

        with bind.begin() as connection:
            for table_name, migration_steps in SCHEMA_MIGRATIONS.items():
                if table_name not in table_names:
                    continue

                existing_columns = {column['name'] for column in inspector.get_columns(table_name)}
                for column_name, statement in migration_steps:
                    if column_name not in existing_columns:
                        connection.execute(text(statement))

            if {'appointments', 'availability', 'notifications'} <= table_names:
                for statement in SCHEMA_INDEXES:
                    connection.execute(text(statement))

        _schema_checked = True
