"""
Studio records: clients, projects, appointments, project sessions and ledger entries
"""

import uuid

from sqlalchemy import Column, Date, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_id():
    """Generate a durable record identifier"""
    return str(uuid.uuid4())


class Client(Base):
    __tablename__ = "clients"

    id = Column(String(36), primary_key=True, default=generate_id)
    owner_user_id = Column(String(128), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)

    created_at = Column(DateTime, server_default=func.now())

    projects = relationship("Project", back_populates="client")


class Project(Base):
    """A body of client work spanning several sessions"""

    __tablename__ = "projects"

    id = Column(String(36), primary_key=True, default=generate_id)
    owner_user_id = Column(String(128), nullable=False, index=True)
    client_id = Column(String(36), ForeignKey("clients.id"), nullable=True)
    title = Column(String(255), nullable=False)

    planned_session_count = Column(Integer, default=0, nullable=False)
    # planning, in_progress, completed, paused, cancelled
    status = Column(String(50), default="planning", nullable=False, index=True)
    total_value = Column(Float, nullable=True)
    value_per_session = Column(Float, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    client = relationship("Client", back_populates="projects")
    sessions = relationship("ProjectSession", back_populates="project")


class Appointment(Base):
    """A scheduled unit of work that may later be confirmed as completed"""

    __tablename__ = "appointments"

    id = Column(String(36), primary_key=True, default=generate_id)
    owner_user_id = Column(String(128), nullable=False, index=True)
    project_id = Column(String(36), ForeignKey("projects.id"), nullable=True, index=True)
    client_id = Column(String(36), ForeignKey("clients.id"), nullable=True)
    # Denormalized display name, may be empty for older rows
    client_name = Column(String(255), nullable=True)

    title = Column(String(255), nullable=False)  # Service performed
    description = Column(Text, nullable=True)
    date = Column(Date, nullable=False)
    start_time = Column(String(10), nullable=True)  # HH:MM format
    end_time = Column(String(10), nullable=True)

    # scheduled, confirmed, in_progress, completed, cancelled
    status = Column(String(50), default="scheduled", nullable=False, index=True)
    estimated_value = Column(Float, default=0, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    project = relationship("Project")


class ProjectSession(Base):
    """One completed unit of work against a project"""

    __tablename__ = "sessions"

    id = Column(String(36), primary_key=True, default=generate_id)
    project_id = Column(String(36), ForeignKey("projects.id"), nullable=False, index=True)
    # At most one session per (project_id, appointment_id) when the reference is set
    appointment_id = Column(String(36), nullable=True, index=True)

    sequence_number = Column(Integer, nullable=False)  # Ordinal within the project
    date = Column(Date, nullable=True)
    amount = Column(Float, nullable=True)
    payment_status = Column(String(50), default="pending", nullable=False)  # pending, paid, cancelled
    technical_notes = Column(Text, nullable=True)
    feedback = Column(Text, nullable=True)
    rating = Column(Integer, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    project = relationship("Project", back_populates="sessions")


class Transaction(Base):
    """Financial ledger entry"""

    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=generate_id)
    owner_user_id = Column(String(128), nullable=False, index=True)
    type = Column(String(50), nullable=False)  # revenue, expense, transfer
    category = Column(String(100), nullable=True)
    amount = Column(Float, nullable=False)
    due_date = Column(Date, nullable=True)
    settlement_date = Column(Date, nullable=True)  # null means pending
    description = Column(Text, nullable=True)
    # At most one transaction per appointment
    appointment_id = Column(String(36), nullable=True, index=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
