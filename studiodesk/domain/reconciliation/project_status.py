"""
Project lifecycle status derived from completed vs planned sessions

planning → in_progress → completed is recomputed after every session change.
paused and cancelled are set by hand and are left alone unless configured otherwise.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...config import PRESERVE_MANUAL_PROJECT_STATUS
from ...errors import NotFoundError, PersistenceError
from ..projects.repository import ProjectRepository, SessionRepository

logger = logging.getLogger(__name__)

STAGE = "project_status"
MANUAL_STATUSES = ("paused", "cancelled")


def derive_project_status(completed_count: int, planned_count: int) -> Optional[str]:
    """
    Pure derivation; None when there is no planned count to derive against.

    Completed counts above the plan still yield "completed".
    """
    if not planned_count or planned_count <= 0:
        return None
    if completed_count <= 0:
        return "planning"
    if completed_count < planned_count:
        return "in_progress"
    return "completed"


class ProjectStatusAggregator:
    def __init__(self, db: Session, preserve_manual_status: bool = PRESERVE_MANUAL_PROJECT_STATUS):
        self.db = db
        self.preserve_manual_status = preserve_manual_status
        self.projects = ProjectRepository()
        self.sessions = SessionRepository()

    def recompute_project_status(
        self, project_id: str, completed_count: int, planned_count: int
    ) -> str:
        """Persist the derived status and return the status the project now has"""
        try:
            project = self.projects.get_project(self.db, project_id)
            if project is None:
                raise NotFoundError(f"Project {project_id} not found", stage=STAGE)

            derived = derive_project_status(completed_count, planned_count)
            if derived is None:
                logger.debug(f"Project {project_id} has no planned sessions, status untouched")
                return project.status

            if self.preserve_manual_status and project.status in MANUAL_STATUSES:
                logger.info(
                    f"ℹ️ Project {project_id} is {project.status}, keeping it over derived '{derived}'"
                )
                return project.status

            previous = project.status
            if previous != derived:
                self.projects.update_status(self.db, project_id, derived)
                logger.info(
                    f"✅ Project {project_id} transitioned: {previous} → {derived} ({completed_count}/{planned_count})"
                )
            return derived
        except PersistenceError as e:
            raise e.with_stage(STAGE)

    def recompute_from_store(self, project_id: str) -> str:
        """Count the project's sessions fresh from the store and recompute"""
        try:
            project = self.projects.get_project(self.db, project_id)
            if project is None:
                raise NotFoundError(f"Project {project_id} not found", stage=STAGE)
            completed_count = self.sessions.count_completed(self.db, project_id)
        except PersistenceError as e:
            raise e.with_stage(STAGE)
        return self.recompute_project_status(
            project_id, completed_count, project.planned_session_count
        )
