from pydantic import Field
from typing import Optional, List, Union
from datetime import datetime

from projectdesk.models.project import ProjectStatus, ProgressType
from projectdesk.schemas.base import CamelModel


class ProjectTaskResponse(CamelModel):
    id: str
    title: str
    completed: bool
    created_at: datetime


class ProjectResponse(CamelModel):
    id: str
    client_id: Optional[str] = None
    developer_id: Optional[str] = None
    client_name: str
    client_email: str
    client_phone_number: Optional[str] = None
    project_name: str
    project_overview: str
    development_areas: List[str] = []
    senior_developers: int = 0
    junior_developers: int = 0
    ui_ux_designers: int = 0
    project_budget: float
    final_cost: Optional[float] = None
    currency: str = "INR"
    status: ProjectStatus
    rejection_reason: Optional[str] = None
    progress: int = 0
    progress_type: ProgressType = ProgressType.MANUAL
    quotation_url: Optional[str] = None
    documentation_url: Optional[str] = None
    submitted_at: datetime
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    deadline: Optional[datetime] = None
    tasks: List[ProjectTaskResponse] = []


class ProjectListResponse(CamelModel):
    projects: List[ProjectResponse]
    total: int


class StatusUpdate(CamelModel):
    status: ProjectStatus
    rejection_reason: Optional[str] = None


class StatusFilter(CamelModel):
    status: Union[ProjectStatus, List[ProjectStatus]]


class AssignDeveloper(CamelModel):
    developer_id: str


class FinalCostUpdate(CamelModel):
    final_cost: float = Field(..., ge=0)


class DeadlineUpdate(CamelModel):
    deadline: Optional[datetime] = None


class ProgressUpdate(CamelModel):
    progress: int


class TaskCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=500)


class TaskUpdate(CamelModel):
    completed: bool
