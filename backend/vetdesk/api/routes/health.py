import logging

from fastapi import APIRouter, Response, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from vetdesk.api.deps import SessionDep

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    ok: bool
    database: str


@router.get("/health", response_model=HealthResponse)
async def health_check(session: SessionDep, response: Response) -> HealthResponse:
    """
    Liveness check. Responds 503 when the database cannot be reached.
    """
    try:
        session.exec(select(1)).first()
    except SQLAlchemyError as e:
        logger.error("Database health check failed: %s", e)
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(ok=False, database="down")

    return HealthResponse(ok=True, database="up")
