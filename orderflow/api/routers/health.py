# orderflow/api/routers/health.py
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from orderflow.data.database import get_db
from orderflow.utils.logging import get_logger
from orderflow.utils.settings import SERVICE_NAME

logger = get_logger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
def health(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError as e:
        logger.error(f"Health check: database unreachable: {e}")
        database = "error"

    return {
        "status": "ok" if database == "ok" else "degraded",
        "service": SERVICE_NAME,
        "database": database,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
