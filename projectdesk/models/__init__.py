# Re-export all models so Base.metadata sees every table
from projectdesk.models.user import User, UserRole
from projectdesk.models.project import Project, ProjectStatus, ProgressType, ProjectTask

__all__ = [
    "User",
    "UserRole",
    "Project",
    "ProjectStatus",
    "ProgressType",
    "ProjectTask",
]
