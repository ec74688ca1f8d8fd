"""
Project repository access.

Thin async queries over the projects table for the three roles, plus the
status and progress updates admins and developers make. Status changes are
free-form: any status may follow any other, with start/end dates set as a
side effect of entering in-progress/completed.
"""

from datetime import datetime
from typing import Iterable, List, Optional, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from projectdesk.core.exceptions import (
    InvalidProgressError,
    ProjectLockedError,
    ProjectNotFoundError,
    TaskNotFoundError,
    UserNotFoundError,
    ValidationError,
)
from projectdesk.core.logging_config import logger
from projectdesk.models.project import Project, ProjectStatus, ProgressType, ProjectTask
from projectdesk.models.user import User, UserRole
from projectdesk.schemas.wizard import ProjectFormData


StatusArg = Union[str, ProjectStatus, Iterable[Union[str, ProjectStatus]]]

RECENT_PROJECTS_LIMIT = 5


def normalize_statuses(status: StatusArg) -> List[ProjectStatus]:
    """One status or a collection of them, as ProjectStatus members"""
    if isinstance(status, (str, ProjectStatus)):
        status = [status]
    try:
        return [ProjectStatus(s) for s in status]
    except ValueError as e:
        raise ValidationError(f"Unknown project status: {e}", field="status") from e


def task_progress(tasks: Iterable[ProjectTask]) -> int:
    tasks = list(tasks)
    if not tasks:
        return 0
    done = sum(1 for t in tasks if t.completed)
    return round(done / len(tasks) * 100)


class ProjectService:
    """Queries and updates for persisted projects"""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ========== Reads ==========

    async def get_all_projects(self) -> List[Project]:
        result = await self.db.execute(
            select(Project).order_by(Project.submitted_at.desc())
        )
        return list(result.scalars().all())

    async def get_project_by_id(self, project_id: str) -> Project:
        """Raises ProjectNotFoundError ("Project not found") when absent"""
        result = await self.db.execute(
            select(Project).where(Project.id == str(project_id))
        )
        project = result.scalar_one_or_none()
        if project is None:
            raise ProjectNotFoundError(str(project_id))
        return project

    async def get_projects_by_client_email(self, client_email: str) -> List[Project]:
        result = await self.db.execute(
            select(Project)
            .where(Project.client_email == client_email)
            .order_by(Project.submitted_at.desc())
        )
        return list(result.scalars().all())

    async def get_projects_by_status(self, status: StatusArg) -> List[Project]:
        result = await self.db.execute(
            select(Project)
            .where(Project.status.in_(normalize_statuses(status)))
            .order_by(Project.submitted_at.desc())
        )
        return list(result.scalars().all())

    async def get_client_projects_by_status(self, client_email: str, status: StatusArg) -> List[Project]:
        result = await self.db.execute(
            select(Project)
            .where(
                Project.client_email == client_email,
                Project.status.in_(normalize_statuses(status)),
            )
            .order_by(Project.submitted_at.desc())
        )
        return list(result.scalars().all())

    async def get_recent_projects(self, client_email: str, limit: int = RECENT_PROJECTS_LIMIT) -> List[Project]:
        result = await self.db.execute(
            select(Project)
            .where(Project.client_email == client_email)
            .order_by(Project.submitted_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_developer_projects(self, developer_id: str) -> List[Project]:
        result = await self.db.execute(
            select(Project)
            .where(Project.developer_id == str(developer_id))
            .order_by(Project.submitted_at.desc())
        )
        return list(result.scalars().all())

    # ========== Writes ==========

    async def create_project(
        self,
        form: ProjectFormData,
        client_id: Optional[str] = None,
        quotation_url: Optional[str] = None,
        documentation_url: Optional[str] = None,
    ) -> Project:
        """Persist a submitted wizard as a pending project"""
        project = Project(
            client_id=client_id,
            client_name=form.client_name,
            client_email=form.client_email,
            client_phone_number=form.client_phone_number or None,
            project_name=form.project_name,
            project_overview=form.project_overview,
            development_areas=list(form.development_areas),
            senior_developers=form.senior_developers,
            junior_developers=form.junior_developers,
            ui_ux_designers=form.ui_ux_designers,
            project_budget=form.project_budget,
            currency=form.currency.value,
            quotation_html=form.quotation_pdf or None,
            quotation_url=quotation_url or form.quotation_url,
            documentation_url=documentation_url or form.documentation_url,
            status=ProjectStatus.PENDING,
            submitted_at=datetime.utcnow(),
            tasks=[],
        )
        self.db.add(project)
        await self.db.flush()
        logger.log_project_event(project.id, "submitted", client_email=form.client_email)
        return project

    async def update_project_status(
        self,
        project_id: str,
        status: Union[str, ProjectStatus],
        rejection_reason: Optional[str] = None,
    ) -> Project:
        """
        Set the status label. Entering in-progress stamps start_date and
        entering completed stamps end_date; no predecessor check is made.
        """
        project = await self.get_project_by_id(project_id)
        new_status = normalize_statuses(status)[0]
        previous = project.status

        project.status = new_status
        now = datetime.utcnow()
        if new_status == ProjectStatus.IN_PROGRESS:
            project.start_date = now
        elif new_status == ProjectStatus.COMPLETED:
            project.end_date = now
            project.progress = 100
        elif new_status == ProjectStatus.REJECTED:
            project.rejection_reason = rejection_reason

        await self.db.flush()
        logger.log_project_event(
            project.id,
            f"status {getattr(previous, 'value', previous)} -> {new_status.value}",
        )
        return project

    async def assign_developer(self, project_id: str, developer_id: str) -> Project:
        project = await self.get_project_by_id(project_id)
        result = await self.db.execute(select(User).where(User.id == str(developer_id)))
        developer = result.scalar_one_or_none()
        if developer is None or developer.role != UserRole.DEVELOPER:
            raise UserNotFoundError(str(developer_id))

        project.developer_id = developer.id
        await self.db.flush()
        logger.log_project_event(project.id, "developer assigned", developer_id=developer.id)
        return project

    async def set_final_cost(self, project_id: str, final_cost: float) -> Project:
        project = await self.get_project_by_id(project_id)
        project.final_cost = final_cost
        await self.db.flush()
        return project

    async def set_deadline(self, project_id: str, deadline: Optional[datetime]) -> Project:
        project = await self.get_project_by_id(project_id)
        project.deadline = deadline
        await self.db.flush()
        return project

    # ========== Progress ==========

    def _complete_if_done(self, project: Project) -> None:
        if project.progress >= 100:
            project.progress = 100
            project.status = ProjectStatus.COMPLETED
            project.end_date = datetime.utcnow()
            logger.log_project_event(project.id, "completed by progress")

    async def update_progress(self, project_id: str, progress: int) -> Project:
        """Manual progress: strictly increasing, within 0..100"""
        project = await self.get_project_by_id(project_id)
        if project.is_locked:
            raise ProjectLockedError(project.id)
        if progress < 0 or progress > 100:
            raise InvalidProgressError("Progress must be between 0 and 100")
        if progress <= project.progress:
            raise InvalidProgressError(
                f"Progress must be greater than the current value ({project.progress}%)"
            )

        project.progress_type = ProgressType.MANUAL
        project.progress = progress
        self._complete_if_done(project)
        await self.db.flush()
        return project

    async def add_task(self, project_id: str, title: str) -> ProjectTask:
        project = await self.get_project_by_id(project_id)
        if project.is_locked:
            raise ProjectLockedError(project.id)

        task = ProjectTask(project_id=project.id, title=title, completed=False, created_at=datetime.utcnow())
        project.tasks.append(task)
        project.progress_type = ProgressType.TASK_BASED
        project.progress = task_progress(project.tasks)
        await self.db.flush()
        return task

    async def set_task_completed(self, project_id: str, task_id: str, completed: bool) -> Project:
        project = await self.get_project_by_id(project_id)
        if project.is_locked:
            raise ProjectLockedError(project.id)

        task = next((t for t in project.tasks if t.id == str(task_id)), None)
        if task is None:
            raise TaskNotFoundError(str(task_id))

        task.completed = completed
        project.progress_type = ProgressType.TASK_BASED
        project.progress = task_progress(project.tasks)
        self._complete_if_done(project)
        await self.db.flush()
        return project
