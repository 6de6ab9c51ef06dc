"""Create an admin account. Admins cannot register through the API.

Usage:
    python -m backend.create_admin --name "Registrar" --email admin@university.edu --password '...'
"""
import argparse
import sys

from backend.core.errors import ServiceError
from backend.database import Base, SessionLocal, engine
from backend.models import appointment, availability, notification, user  # noqa: F401
from backend.services.users import register_user


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--name", required=True)
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    args = parser.parse_args(argv)

    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        admin = register_user(db, args.name, args.email, args.password, role="admin", allow_admin=True)
    except ServiceError as exc:
        print(f"Could not create admin: {exc.message}", file=sys.stderr)
        return 1
    finally:
        db.close()

    print(f"Created admin {admin.email} (id {admin.id})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
