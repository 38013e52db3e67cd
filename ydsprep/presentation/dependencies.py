from functools import lru_cache
from typing import Optional
from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session
import logging

from ydsprep.core.config import settings
from ydsprep.infrastructure.db.session import SessionLocal
from ydsprep.infrastructure.catalog.content_loader import ChainedContentLoader, JsonCatalogLoader
from ydsprep.infrastructure.catalog.database_loader import DatabaseContentLoader
from ydsprep.infrastructure.repositories.attempt_repository import SqlAttemptRecorder
from ydsprep.application.assessment.session_service import AssessmentSessionService, SessionRegistry

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"

_registry = SessionRegistry()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(
    x_user_id: Optional[str] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None),
) -> dict:
    """
    Identity is issued by the external provider; its proxy forwards the
    opaque user id and role as headers.
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return {
        "user_id": x_user_id.strip(),
        "role": (x_user_role or "student").strip().lower(),
    }


def admin_required(current_user: dict = Depends(get_current_user)) -> dict:
    if current_user.get("role") != ADMIN_ROLE:
        logger.warning(
            f"Access denied for non-admin user_id: {current_user.get('user_id')}"
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrative privileges required",
        )
    logger.info(f"Admin access granted for user_id: {current_user.get('user_id')}")
    return current_user


def get_session_registry() -> SessionRegistry:
    return _registry


@lru_cache(maxsize=1)
def get_catalog_loader() -> JsonCatalogLoader:
    logger.info(f"Using assessment catalog {settings.catalog_path}")
    return JsonCatalogLoader(settings.catalog_path)


def get_session_service(
    db: Session = Depends(get_db),
    registry: SessionRegistry = Depends(get_session_registry),
    catalog: JsonCatalogLoader = Depends(get_catalog_loader),
) -> AssessmentSessionService:
    loader = ChainedContentLoader([catalog, DatabaseContentLoader(db)])
    return AssessmentSessionService(
        registry=registry,
        loader=loader,
        recorder=SqlAttemptRecorder(db),
        points_per_correct=settings.points_per_correct,
    )
