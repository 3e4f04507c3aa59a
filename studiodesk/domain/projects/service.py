"""Project service - session bookkeeping outside of appointment confirmation"""

import logging

from sqlalchemy.orm import Session

from ...errors import NotFoundError
from ...models import Project, ProjectSession
from ..reconciliation.project_status import ProjectStatusAggregator
from .repository import ProjectRepository, SessionRepository
from .schemas import ManualSessionCreate, ProjectSummary, SessionUpdate

logger = logging.getLogger(__name__)


class ProjectService:
    """Service layer for project detail operations"""

    def __init__(self, db: Session):
        self.db = db
        self.projects = ProjectRepository()
        self.sessions = SessionRepository()
        self.aggregator = ProjectStatusAggregator(db)

    def get_project(self, project_id: str, owner_user_id: str) -> Project:
        project = self.projects.get_project_for_owner(self.db, project_id, owner_user_id)
        if project is None:
            raise NotFoundError(f"Project {project_id} not found")
        return project

    def _get_session(self, project_id: str, session_id: str) -> ProjectSession:
        session = self.sessions.get_session(self.db, session_id)
        if session is None or session.project_id != project_id:
            raise NotFoundError(f"Session {session_id} not found")
        return session

    def list_sessions(self, project_id: str, owner_user_id: str) -> list[ProjectSession]:
        self.get_project(project_id, owner_user_id)
        return self.sessions.list_for_project(self.db, project_id)

    def register_past_session(
        self, project_id: str, data: ManualSessionCreate, owner_user_id: str
    ) -> tuple[ProjectSession, str]:
        """Record a session with no appointment behind it; returns it with the project status"""
        self.get_project(project_id, owner_user_id)

        sequence_number = self.sessions.count_for_project(self.db, project_id) + 1
        session = self.sessions.insert_session(
            self.db,
            project_id=project_id,
            appointment_id=None,
            sequence_number=sequence_number,
            date=data.date,
            amount=data.amount,
            payment_status=data.payment_status,
            technical_notes=data.technical_notes,
        )
        logger.info(f"✅ Past session #{sequence_number} registered for project {project_id}")

        status = self.aggregator.recompute_from_store(project_id)
        return session, status

    def update_session(
        self, project_id: str, session_id: str, data: SessionUpdate, owner_user_id: str
    ) -> tuple[ProjectSession, str]:
        self.get_project(project_id, owner_user_id)
        session = self._get_session(project_id, session_id)

        updates = data.model_dump(exclude_unset=True)
        if updates:
            self.sessions.update_session(self.db, session_id, **updates)
            logger.info(f"✅ Session {session_id} updated: {sorted(updates)}")

        status = self.aggregator.recompute_from_store(project_id)
        return session, status

    def delete_session(self, project_id: str, session_id: str, owner_user_id: str) -> str:
        self.get_project(project_id, owner_user_id)
        self._get_session(project_id, session_id)

        self.sessions.delete_session(self.db, session_id)
        logger.info(f"🗑️ Session {session_id} deleted from project {project_id}")

        return self.aggregator.recompute_from_store(project_id)

    def recompute_status(self, project_id: str, owner_user_id: str) -> tuple[str, int, int]:
        project = self.get_project(project_id, owner_user_id)
        completed_count = self.sessions.count_completed(self.db, project_id)
        status = self.aggregator.recompute_project_status(
            project_id, completed_count, project.planned_session_count
        )
        return status, completed_count, project.planned_session_count

    def get_summary(self, project_id: str, owner_user_id: str) -> ProjectSummary:
        """Paid-to-date is always summed from paid sessions, never read from the project"""
        project = self.get_project(project_id, owner_user_id)
        paid_to_date = self.sessions.paid_total(self.db, project_id)
        completed_count = self.sessions.count_completed(self.db, project_id)
        planned_count = project.planned_session_count or 0

        progress = 0
        if planned_count > 0:
            progress = min(100, round(completed_count / planned_count * 100))

        remaining = None
        if project.total_value is not None:
            remaining = round(project.total_value - paid_to_date, 2)

        return ProjectSummary(
            id=project.id,
            title=project.title,
            status=project.status,
            total_value=project.total_value,
            paid_to_date=round(paid_to_date, 2),
            remaining=remaining,
            completed_count=completed_count,
            planned_count=planned_count,
            progress_percent=progress,
        )
