import logging
from typing import Optional

from fastapi import HTTPException, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from santa_board.core.auth import Identity, get_identity_from_cookie
from santa_board.db.database import SessionLocal

logger = logging.getLogger(__name__)


def get_db() -> Session:
    db = SessionLocal()
    try:
        yield db
    except SQLAlchemyError:
        logger.exception("Database error, rolling back")
        db.rollback()
        raise
    finally:
        db.close()


def get_session_identity(request: Request) -> Optional[Identity]:
    try:
        return get_identity_from_cookie(request)
    except HTTPException:
        return None
