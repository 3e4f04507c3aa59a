"""Project repository - Database operations for projects and their sessions"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Client, Project, ProjectSession
from ...shared.persistence import store_call


class ProjectRepository:
    """Repository for project database operations"""

    @staticmethod
    def get_project(db: Session, project_id: str) -> Optional[Project]:
        with store_call(db, f"project lookup {project_id}"):
            return db.query(Project).filter(Project.id == project_id).first()

    @staticmethod
    def get_project_for_owner(db: Session, project_id: str, owner_user_id: str) -> Optional[Project]:
        with store_call(db, f"project lookup {project_id}"):
            return (
                db.query(Project)
                .filter(Project.id == project_id, Project.owner_user_id == owner_user_id)
                .first()
            )

    @staticmethod
    def update_status(db: Session, project_id: str, status: str) -> int:
        """Persist a project status, returning the affected row count"""
        with store_call(db, f"project status update {project_id}"):
            affected = (
                db.query(Project)
                .filter(Project.id == project_id)
                .update({Project.status: status}, synchronize_session="fetch")
            )
            db.commit()
            return affected

    @staticmethod
    def get_client_name_for_project(db: Session, project_id: str) -> Optional[str]:
        """Follow project -> client and return the client's name"""
        with store_call(db, f"client lookup for project {project_id}"):
            row = (
                db.query(Client.name)
                .join(Project, Project.client_id == Client.id)
                .filter(Project.id == project_id)
                .first()
            )
            return row[0] if row else None


class SessionRepository:
    """Repository for project session database operations"""

    @staticmethod
    def get_session(db: Session, session_id: str) -> Optional[ProjectSession]:
        with store_call(db, f"session lookup {session_id}"):
            return db.query(ProjectSession).filter(ProjectSession.id == session_id).first()

    @staticmethod
    def find_by_appointment(
        db: Session, project_id: str, appointment_id: str
    ) -> Optional[ProjectSession]:
        """Find the session booked for a (project, appointment) pair"""
        with store_call(db, f"session lookup for appointment {appointment_id}"):
            return (
                db.query(ProjectSession)
                .filter(
                    ProjectSession.project_id == project_id,
                    ProjectSession.appointment_id == appointment_id,
                )
                .limit(1)
                .first()
            )

    @staticmethod
    def list_for_project(db: Session, project_id: str) -> list[ProjectSession]:
        with store_call(db, f"session listing for project {project_id}"):
            return (
                db.query(ProjectSession)
                .filter(ProjectSession.project_id == project_id)
                .order_by(ProjectSession.sequence_number.asc())
                .all()
            )

    @staticmethod
    def count_for_project(db: Session, project_id: str) -> int:
        with store_call(db, f"session count for project {project_id}"):
            return (
                db.query(func.count(ProjectSession.id))
                .filter(ProjectSession.project_id == project_id)
                .scalar()
            )

    @staticmethod
    def count_completed(db: Session, project_id: str) -> int:
        """Sessions that count toward project completion (anything not cancelled)"""
        with store_call(db, f"completed session count for project {project_id}"):
            return (
                db.query(func.count(ProjectSession.id))
                .filter(
                    ProjectSession.project_id == project_id,
                    ProjectSession.payment_status != "cancelled",
                )
                .scalar()
            )

    @staticmethod
    def paid_total(db: Session, project_id: str) -> float:
        with store_call(db, f"paid total for project {project_id}"):
            total = (
                db.query(func.sum(ProjectSession.amount))
                .filter(
                    ProjectSession.project_id == project_id,
                    ProjectSession.payment_status == "paid",
                )
                .scalar()
            )
            return float(total or 0)

    @staticmethod
    def insert_session(db: Session, **session_data) -> ProjectSession:
        with store_call(db, "session insert"):
            session = ProjectSession(**session_data)
            db.add(session)
            db.commit()
            db.refresh(session)
            return session

    @staticmethod
    def update_session(db: Session, session_id: str, **updates) -> int:
        """Apply a partial update, returning the affected row count"""
        with store_call(db, f"session update {session_id}"):
            affected = (
                db.query(ProjectSession)
                .filter(ProjectSession.id == session_id)
                .update(
                    {getattr(ProjectSession, key): value for key, value in updates.items()},
                    synchronize_session="fetch",
                )
            )
            db.commit()
            return affected

    @staticmethod
    def delete_session(db: Session, session_id: str) -> int:
        with store_call(db, f"session delete {session_id}"):
            affected = (
                db.query(ProjectSession)
                .filter(ProjectSession.id == session_id)
                .delete(synchronize_session="fetch")
            )
            db.commit()
            return affected
