from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from projectdesk.core.database import get_db
from projectdesk.core.exceptions import ProjectNotFoundError
from projectdesk.models.project import Project, ProjectStatus
from projectdesk.models.user import User, UserRole
from projectdesk.modules.auth.dependencies import (
    get_current_admin,
    get_current_client,
    get_current_developer,
    get_current_user,
)
from projectdesk.schemas.project import (
    AssignDeveloper,
    DeadlineUpdate,
    FinalCostUpdate,
    ProgressUpdate,
    ProjectListResponse,
    ProjectResponse,
    ProjectTaskResponse,
    StatusUpdate,
    TaskCreate,
    TaskUpdate,
)
from projectdesk.services.pdf_export import html_to_pdf_async
from projectdesk.services.project_service import ProjectService

router = APIRouter()
admin_router = APIRouter()
developer_router = APIRouter()


def _list(projects: List[Project]) -> ProjectListResponse:
    return ProjectListResponse(
        projects=[ProjectResponse.model_validate(p) for p in projects],
        total=len(projects),
    )


def can_view(user: User, project: Project) -> bool:
    if user.role == UserRole.ADMIN:
        return True
    if user.role == UserRole.DEVELOPER:
        return project.developer_id == user.id
    return project.client_id == user.id or project.client_email == user.email


async def get_visible_project(project_id: str, user: User, db: AsyncSession) -> Project:
    """Projects the user may not see are reported as not found"""
    project = await ProjectService(db).get_project_by_id(project_id)
    if not can_view(user, project):
        raise ProjectNotFoundError(project_id)
    return project


async def get_assigned_project(project_id: str, developer: User, db: AsyncSession) -> Project:
    project = await ProjectService(db).get_project_by_id(project_id)
    if project.developer_id != developer.id:
        raise ProjectNotFoundError(project_id)
    return project


# ==================== Client ====================

@router.get("/mine", response_model=ProjectListResponse)
async def my_projects(
    current_user: User = Depends(get_current_client),
    db: AsyncSession = Depends(get_db),
):
    return _list(await ProjectService(db).get_projects_by_client_email(current_user.email))


@router.get("/mine/recent", response_model=ProjectListResponse)
async def my_recent_projects(
    limit: int = Query(5, ge=1, le=50),
    current_user: User = Depends(get_current_client),
    db: AsyncSession = Depends(get_db),
):
    return _list(await ProjectService(db).get_recent_projects(current_user.email, limit=limit))


@router.get("/mine/status/{status}", response_model=ProjectListResponse)
async def my_projects_by_status(
    status: str,
    current_user: User = Depends(get_current_client),
    db: AsyncSession = Depends(get_db),
):
    """`status` may be a single label or a comma-separated list"""
    statuses = [s.strip() for s in status.split(",") if s.strip()]
    return _list(await ProjectService(db).get_client_projects_by_status(current_user.email, statuses))


# ==================== Any role ====================

@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await get_visible_project(project_id, current_user, db)


@router.get("/{project_id}/quotation.pdf")
async def download_quotation(
    project_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Render the stored quotation on demand"""
    project = await get_visible_project(project_id, current_user, db)
    if not project.quotation_html:
        raise ProjectNotFoundError(project_id)
    pdf_bytes = await html_to_pdf_async(project.quotation_html, title=f"{project.project_name} - Quotation")
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="quotation-{project.id}.pdf"'},
    )


# ==================== Admin ====================

@admin_router.get("", response_model=ProjectListResponse)
async def list_projects(
    status: Optional[List[ProjectStatus]] = Query(None),
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    service = ProjectService(db)
    if status:
        return _list(await service.get_projects_by_status(status))
    return _list(await service.get_all_projects())


@admin_router.patch("/{project_id}/status", response_model=ProjectResponse)
async def update_status(
    project_id: str,
    update: StatusUpdate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    return await ProjectService(db).update_project_status(project_id, update.status, update.rejection_reason)


@admin_router.patch("/{project_id}/assign", response_model=ProjectResponse)
async def assign_developer(
    project_id: str,
    update: AssignDeveloper,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    return await ProjectService(db).assign_developer(project_id, update.developer_id)


@admin_router.patch("/{project_id}/final-cost", response_model=ProjectResponse)
async def set_final_cost(
    project_id: str,
    update: FinalCostUpdate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    return await ProjectService(db).set_final_cost(project_id, update.final_cost)


@admin_router.patch("/{project_id}/deadline", response_model=ProjectResponse)
async def set_deadline(
    project_id: str,
    update: DeadlineUpdate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    return await ProjectService(db).set_deadline(project_id, update.deadline)


# ==================== Developer ====================

@developer_router.get("", response_model=ProjectListResponse)
async def assigned_projects(
    developer: User = Depends(get_current_developer),
    db: AsyncSession = Depends(get_db),
):
    return _list(await ProjectService(db).list_developer_projects(developer.id))


@developer_router.patch("/{project_id}/progress", response_model=ProjectResponse)
async def update_progress(
    project_id: str,
    update: ProgressUpdate,
    developer: User = Depends(get_current_developer),
    db: AsyncSession = Depends(get_db),
):
    await get_assigned_project(project_id, developer, db)
    return await ProjectService(db).update_progress(project_id, update.progress)


@developer_router.post("/{project_id}/tasks", response_model=ProjectTaskResponse, status_code=201)
async def add_task(
    project_id: str,
    task: TaskCreate,
    developer: User = Depends(get_current_developer),
    db: AsyncSession = Depends(get_db),
):
    await get_assigned_project(project_id, developer, db)
    return await ProjectService(db).add_task(project_id, task.title)


@developer_router.patch("/{project_id}/tasks/{task_id}", response_model=ProjectResponse)
async def update_task(
    project_id: str,
    task_id: str,
    update: TaskUpdate,
    developer: User = Depends(get_current_developer),
    db: AsyncSession = Depends(get_db),
):
    await get_assigned_project(project_id, developer, db)
    return await ProjectService(db).set_task_completed(project_id, task_id, update.completed)
