"""Shared FastAPI dependencies."""

from uuid import UUID

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from .auth.models import User
from .database.base import get_db
from .enrichment.scheduler import EnrichmentScheduler
from .errors import Unauthenticated
from .storage import LocalFileStorage


def get_storage(request: Request) -> LocalFileStorage:
    """Get the file storage from app state."""
    return request.app.state.storage


def get_scheduler(request: Request) -> EnrichmentScheduler:
    """Get the background enrichment scheduler from app state."""
    return request.app.state.scheduler


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """Get the authenticated user from the session cookie."""
    user_id_str = request.session.get("user_id")
    if not user_id_str:
        raise Unauthenticated("User not authenticated")
    try:
        user_id = UUID(user_id_str)
    except (ValueError, AttributeError):
        request.session.clear()
        raise Unauthenticated("User not authenticated")
    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.is_active:
        request.session.clear()
        raise Unauthenticated("User not found")
    return user
