#!/usr/bin/env python3
"""Create (or re-activate) a placement portal admin account.

Admins cannot self-register, so the first one is created here.

Run from the repository root:
    python -m scripts.create_admin --email admin@college.edu --name "Placement Cell"
Or via Docker:
    docker compose exec web python /app/scripts/create_admin.py --email admin@college.edu
"""

import argparse
import getpass
import sys
from pathlib import Path

# Add backend to path when running as script
backend_dir = Path(__file__).resolve().parent.parent / "backend"
if backend_dir.exists():
    sys.path.insert(0, str(backend_dir))

from sqlalchemy import select

from app.models.base import Base, SyncSessionLocal, sync_engine
from app.models.user import User, UserRole, UserStatus
from app.models import application, job, setting  # noqa: F401
from app.services.auth_service import check_new_password, hash_password
from app.services.errors import ValidationError


def create_admin(email: str, name: str, password: str) -> User:
    email = email.strip().lower()
    try:
        check_new_password(password, None)
    except ValidationError as e:
        raise SystemExit(e.message)

    Base.metadata.create_all(sync_engine)
    db = SyncSessionLocal()
    try:
        user = db.execute(select(User).where(User.email == email)).scalar_one_or_none()
        if user and user.role != UserRole.admin.value:
            raise SystemExit(f"{email} already belongs to a {user.role} account")

        if user:
            print(f"Updating existing admin {email}")
        else:
            user = User(email=email, role=UserRole.admin.value, skills=[])
            db.add(user)
            print(f"Creating admin {email}")

        user.name = name
        user.hashed_password = hash_password(password)
        user.status = UserStatus.active.value
        db.commit()
        return user
    finally:
        db.close()


def main():
    parser = argparse.ArgumentParser(description="Create a placement portal admin account")
    parser.add_argument("--email", required=True, help="Admin email address")
    parser.add_argument("--name", default="Administrator", help="Display name")
    parser.add_argument("--password", help="Password (prompted when omitted)")
    args = parser.parse_args()

    password = args.password or getpass.getpass("Password: ")
    create_admin(args.email, args.name, password)
    print("Done. Log in with the admin role and the configured ADMIN_KEY.")


if __name__ == "__main__":
    main()
