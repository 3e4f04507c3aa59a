"""Project router - FastAPI endpoints for project detail operations"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_acting_user_id
from ...database import get_db
from ...errors import ReconciliationError
from ...shared.http_errors import to_http_exception
from ..reconciliation.schemas import ProjectStatusResponse
from .schemas import (
    ManualSessionCreate,
    ProjectSummary,
    SessionChangeResponse,
    SessionResponse,
    SessionUpdate,
)
from .service import ProjectService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/projects", tags=["Projects"])


def get_project_service(db: Session = Depends(get_db)) -> ProjectService:
    """Dependency injection for ProjectService"""
    return ProjectService(db)


@router.get("/{project_id}/summary", response_model=ProjectSummary)
async def get_project_summary(
    project_id: str,
    user_id: str = Depends(get_acting_user_id),
    service: ProjectService = Depends(get_project_service),
):
    """Project figures with paid-to-date derived from paid sessions"""
    try:
        return service.get_summary(project_id, user_id)
    except ReconciliationError as e:
        raise to_http_exception(e) from e


@router.get("/{project_id}/sessions", response_model=list[SessionResponse])
async def list_sessions(
    project_id: str,
    user_id: str = Depends(get_acting_user_id),
    service: ProjectService = Depends(get_project_service),
):
    try:
        return service.list_sessions(project_id, user_id)
    except ReconciliationError as e:
        raise to_http_exception(e) from e


@router.post("/{project_id}/sessions", response_model=SessionChangeResponse)
async def register_past_session(
    project_id: str,
    data: ManualSessionCreate,
    user_id: str = Depends(get_acting_user_id),
    service: ProjectService = Depends(get_project_service),
):
    """Register a session that was not scheduled through an appointment"""
    try:
        session, status = service.register_past_session(project_id, data, user_id)
    except ReconciliationError as e:
        raise to_http_exception(e) from e
    return SessionChangeResponse(
        session=SessionResponse.model_validate(session), project_status=status
    )


@router.patch("/{project_id}/sessions/{session_id}", response_model=SessionChangeResponse)
async def update_session(
    project_id: str,
    session_id: str,
    data: SessionUpdate,
    user_id: str = Depends(get_acting_user_id),
    service: ProjectService = Depends(get_project_service),
):
    try:
        session, status = service.update_session(project_id, session_id, data, user_id)
    except ReconciliationError as e:
        raise to_http_exception(e) from e
    return SessionChangeResponse(
        session=SessionResponse.model_validate(session), project_status=status
    )


@router.delete("/{project_id}/sessions/{session_id}", response_model=SessionChangeResponse)
async def delete_session(
    project_id: str,
    session_id: str,
    user_id: str = Depends(get_acting_user_id),
    service: ProjectService = Depends(get_project_service),
):
    try:
        status = service.delete_session(project_id, session_id, user_id)
    except ReconciliationError as e:
        raise to_http_exception(e) from e
    return SessionChangeResponse(project_status=status)


@router.post("/{project_id}/status/recompute", response_model=ProjectStatusResponse)
async def recompute_project_status(
    project_id: str,
    user_id: str = Depends(get_acting_user_id),
    service: ProjectService = Depends(get_project_service),
):
    """Re-derive the project status from its sessions"""
    try:
        status, completed_count, planned_count = service.recompute_status(project_id, user_id)
    except ReconciliationError as e:
        raise to_http_exception(e) from e
    return ProjectStatusResponse(
        project_id=project_id,
        status=status,
        completed_count=completed_count,
        planned_count=planned_count,
    )
