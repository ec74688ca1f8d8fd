from sqlalchemy import Column, String, DateTime, Enum as SQLEnum, Integer, Float, Text, ForeignKey, JSON, Boolean, Index
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from projectdesk.core.database import Base
from projectdesk.core.types import GUID, generate_uuid


class ProjectStatus(str, enum.Enum):
    """Lifecycle label; any status may follow any other"""
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    REJECTED = "rejected"
    DELAYED = "delayed"


class ProgressType(str, enum.Enum):
    MANUAL = "manual"
    TASK_BASED = "task-based"


def _values(enum_cls):
    return [m.value for m in enum_cls]


class Project(Base):
    """A client's submitted project request"""
    __tablename__ = "projects"

    __table_args__ = (
        Index('ix_projects_client_email', 'client_email'),
        Index('ix_projects_status', 'status'),
        Index('ix_projects_submitted_at', 'submitted_at'),
        Index('ix_projects_client_status', 'client_email', 'status'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    client_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    developer_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    # Client details, copied from the wizard at submission
    client_name = Column(String(255), nullable=False)
    client_email = Column(String(255), nullable=False)
    client_phone_number = Column(String(50), nullable=True)

    project_name = Column(String(500), nullable=False)
    project_overview = Column(Text, nullable=False)
    development_areas = Column(JSON, nullable=False, default=list)

    senior_developers = Column(Integer, default=0, nullable=False)
    junior_developers = Column(Integer, default=0, nullable=False)
    ui_ux_designers = Column(Integer, default=0, nullable=False)

    project_budget = Column(Float, nullable=False, default=0)
    final_cost = Column(Float, nullable=True)
    currency = Column(String(3), nullable=False, default="INR")

    status = Column(
        SQLEnum(ProjectStatus, name="projectstatus", values_callable=_values),
        default=ProjectStatus.PENDING,
        nullable=False,
    )
    rejection_reason = Column(Text, nullable=True)

    progress = Column(Integer, default=0, nullable=False)
    progress_type = Column(
        SQLEnum(ProgressType, name="progresstype", values_callable=_values),
        default=ProgressType.MANUAL,
        nullable=False,
    )

    quotation_url = Column(Text, nullable=True)
    documentation_url = Column(Text, nullable=True)
    quotation_html = Column(Text, nullable=True)

    submitted_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    start_date = Column(DateTime, nullable=True)
    end_date = Column(DateTime, nullable=True)
    deadline = Column(DateTime, nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    tasks = relationship(
        "ProjectTask",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="ProjectTask.created_at",
        lazy="selectin",
    )

    @property
    def is_locked(self) -> bool:
        return self.status == ProjectStatus.COMPLETED

    def __repr__(self):
        return f"<Project {self.project_name} ({self.status})>"


class ProjectTask(Base):
    """Checklist item used by task-based progress"""
    __tablename__ = "project_tasks"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    project_id = Column(GUID, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(500), nullable=False)
    completed = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    project = relationship("Project", back_populates="tasks")

    def __repr__(self):
        return f"<ProjectTask {self.title} done={self.completed}>"
