from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlmodel import Session
from datetime import datetime
import logging

from bookstore.database import get_session

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/check")
def health_check(session: Session = Depends(get_session)):
    db_status = "ok"

    try:
        # simple DB ping
        session.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database ping failed: {e}")
        db_status = "failed"

    return {
        "status": "ok",
        "database": db_status,
        "timestamp": datetime.utcnow().isoformat()
    }
