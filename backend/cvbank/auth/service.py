"""Authentication service: user management and password hashing."""

import logging

import bcrypt
from sqlalchemy.orm import Session

from ..errors import Conflict
from .models import User

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode(), hashed.encode())


def split_name(name: str) -> tuple[str, str]:
    """Split a full name into (first, last); everything after the first word is the last name."""
    parts = name.strip().split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == email.lower()).first()


def create_user(db: Session, name: str, email: str, password: str) -> User:
    """Register a new user. Raises Conflict if the email is taken."""
    if get_user_by_email(db, email):
        raise Conflict("A user with this email already exists")
    first_name, last_name = split_name(name)
    user = User(
        email=email.lower(),
        password_hash=hash_password(password),
        first_name=first_name,
        last_name=last_name,
    )
    db.add(user)
    db.flush()
    logger.info("User registered: id=%s", user.id)
    return user


def authenticate_user(db: Session, email: str, password: str) -> User | None:
    """Verify credentials and return user, or None if invalid."""
    user = get_user_by_email(db, email)
    if not user or not user.is_active or not verify_password(password, user.password_hash):
        return None
    return user
