"""
Admin credentials: password hashing, validation, creation.
Seed the first admin from env (ACDA_SEED_ADMIN_USER + ACDA_SEED_ADMIN_PASSWORD) or from the CLI:

    python -m acda_site.seed <username> <password>
"""
import logging
import os
import re
import sys

import bcrypt
from pydantic import EmailStr, TypeAdapter, ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from acda_site.models import Admin

logger = logging.getLogger(__name__)

_USERNAME_RE = re.compile(r"^[a-zA-Z0-9_-]+$")
_EMAIL = TypeAdapter(EmailStr)


def _is_email(value: str) -> bool:
    try:
        _EMAIL.validate_python(value)
    except ValidationError:
        return False
    return True


class AdminExists(Exception):
    pass


def hash_password(password: str) -> str:
    # Bcrypt has a 72-byte limit
    raw = password.encode("utf-8")
    if len(raw) > 72:
        raw = raw[:72]
    return bcrypt.hashpw(raw, bcrypt.gensalt(rounds=10)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    raw = plain.encode("utf-8")[:72]
    return bcrypt.checkpw(raw, hashed.encode("utf-8"))


def normalize_username(username: str) -> str:
    return username.strip().lower()


def credential_errors(username: str | None, password: str | None) -> str | None:
    """First problem with a username/password pair, or None."""
    if not username or not password:
        return "Username and password are required"
    name = normalize_username(username)
    if len(name) < 3:
        return "Username must be at least 3 characters"
    if len(name) > 50:
        return "Username cannot exceed 50 characters"
    if not (_USERNAME_RE.match(name) or _is_email(name)):
        return "Username must be letters, numbers, underscores and hyphens, or an email address"
    if len(password) < 8:
        return "Password must be at least 8 characters"
    return None


def create_admin(db: Session, username: str, password: str) -> Admin:
    """Insert one admin. Raises AdminExists if the (normalized) username is taken."""
    name = normalize_username(username)
    if db.query(Admin).filter(Admin.username == name).first() is not None:
        raise AdminExists(name)
    admin = Admin(username=name, password_hash=hash_password(password))
    db.add(admin)
    db.commit()
    db.refresh(admin)
    logger.info("Admin user created: %s", admin.username)
    return admin


def seed_from_env(db: Session) -> None:
    """Create one admin from env if set and missing. No default credentials."""
    seed_user = os.environ.get("ACDA_SEED_ADMIN_USER")
    seed_password = os.environ.get("ACDA_SEED_ADMIN_PASSWORD")
    if not (seed_user and seed_password):
        return
    problem = credential_errors(seed_user, seed_password)
    if problem:
        logger.warning("Not seeding admin %s: %s", seed_user, problem)
        return
    try:
        create_admin(db, seed_user, seed_password)
    except AdminExists:
        logger.debug("Admin already exists: %s", seed_user)
    except IntegrityError:
        # Another worker seeded the same admin between the lookup and the insert
        db.rollback()
        logger.debug("Admin already exists: %s", seed_user)


def main(argv: list[str]) -> int:
    if len(argv) < 2:
        print("Usage: python -m acda_site.seed <username> <password>")
        return 1
    username, password = argv[0], argv[1]
    problem = credential_errors(username, password)
    if problem:
        print(f"Error: {problem}")
        return 1

    from acda_site.database import SessionLocal, init_db

    init_db()
    db = SessionLocal()
    try:
        admin = create_admin(db, username, password)
    except AdminExists:
        print(f"Admin user already exists: {normalize_username(username)}")
        return 1
    finally:
        db.close()
    print(f"Admin user created: {admin.username} (id {admin.id})")
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    sys.exit(main(sys.argv[1:]))
