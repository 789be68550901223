#!/usr/bin/env python3
"""
Create (or reset the password of) an admin account.

Credentials come from environment variables so they never end up in shell
history or source control. An existing admin with the same email keeps its
id and gets the new password; its open sessions are revoked.

Usage:
    # Create the schema (if needed) and the admin
    ADMIN_EMAIL=admin@example.com ADMIN_PASSWORD='...' \
        python scripts/create_admin.py --init-db

    # Dry run (shows what would be done without making changes)
    ADMIN_EMAIL=admin@example.com ADMIN_PASSWORD='...' \
        python scripts/create_admin.py --dry-run
"""

import argparse
import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.core.security import hash_password  # noqa: E402
from app.models import Admin, AdminSession, Base, SessionLocal, engine  # noqa: E402

MIN_PASSWORD_LENGTH = 8


def get_admin_credentials() -> tuple:
    """Read and validate ADMIN_EMAIL / ADMIN_PASSWORD."""
    email = os.environ.get("ADMIN_EMAIL", "").strip().lower()
    password = os.environ.get("ADMIN_PASSWORD", "")

    if not email or "@" not in email:
        print("ERROR: ADMIN_EMAIL environment variable must be a valid email address")
        sys.exit(1)
    if len(password) < MIN_PASSWORD_LENGTH:
        print(
            f"ERROR: ADMIN_PASSWORD environment variable is required "
            f"(at least {MIN_PASSWORD_LENGTH} characters)"
        )
        print("Set it via: export ADMIN_PASSWORD='your-secure-password'")
        sys.exit(1)
    return email, password


def upsert_admin(db, email: str, password: str, dry_run: bool = False) -> None:
    """Create the admin, or reset its password if it already exists."""
    existing = db.query(Admin).filter(Admin.email == email).first()

    if dry_run:
        action = "reset password for" if existing else "create"
        print(f"[DRY RUN] Would {action} admin: {email}")
        return

    if existing:
        existing.password_hash = hash_password(password)
        revoked = (
            db.query(AdminSession)
            .filter(AdminSession.admin_id == existing.id)
            .delete(synchronize_session=False)
        )
        db.commit()
        print(f"Reset password for admin {email} (ID: {existing.id})")
        if revoked:
            print(f"Revoked {revoked} open session(s)")
        return

    admin = Admin(email=email, password_hash=hash_password(password))
    db.add(admin)
    db.commit()
    db.refresh(admin)
    print(f"Created admin {email} with ID: {admin.id}")


def main():
    parser = argparse.ArgumentParser(description="Create or reset an admin account")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be done without making changes",
    )
    parser.add_argument(
        "--init-db",
        action="store_true",
        help="Create any missing tables before creating the admin",
    )
    args = parser.parse_args()

    email, password = get_admin_credentials()

    if args.init_db and not args.dry_run:
        Base.metadata.create_all(bind=engine)
        print("Database tables created (existing tables were left untouched)")

    db = SessionLocal()
    try:
        upsert_admin(db, email, password, dry_run=args.dry_run)
    except Exception as e:
        db.rollback()
        print(f"ERROR: {e}")
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    main()
