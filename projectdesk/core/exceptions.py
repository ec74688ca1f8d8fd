"""
Domain exceptions for ProjectDesk
=================================

Every error raised by the services derives from ProjectDeskError. The API layer
maps each class to an HTTP status through its `status_code` attribute.

Usage:
    from projectdesk.core.exceptions import ProjectNotFoundError

    if not project:
        raise ProjectNotFoundError(project_id)
"""

from typing import Optional, Any, Dict, List


class ProjectDeskError(Exception):
    """Base exception for all ProjectDesk errors"""

    status_code = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Authentication & Authorization Errors
# ============================================

class AuthenticationError(ProjectDeskError):
    """User authentication failed"""

    status_code = 401

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, code="AUTH_FAILED")


class AuthorizationError(ProjectDeskError):
    """User not authorized for this action"""

    status_code = 403

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message, code="NOT_AUTHORIZED")


class RoleMismatchError(AuthorizationError):
    """Signed in with a role the account does not hold"""

    def __init__(self, role: str):
        super().__init__(f"You do not have {role} permissions")
        self.code = "ROLE_MISMATCH"
        self.details = {"role": role}


class EmailAlreadyRegisteredError(ProjectDeskError):
    status_code = 400

    def __init__(self, email: str):
        super().__init__(
            "Email already registered",
            code="EMAIL_ALREADY_REGISTERED",
            details={"email": email}
        )


# ============================================
# Resource Errors (404-type)
# ============================================

class ResourceNotFoundError(ProjectDeskError):
    """Base class for not found errors"""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: str, message: Optional[str] = None):
        super().__init__(
            message or f"{resource_type} with ID '{resource_id}' not found",
            code=f"{resource_type.upper()}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id}
        )


class ProjectNotFoundError(ResourceNotFoundError):
    """Project lookup by id yielded nothing"""

    def __init__(self, project_id: str):
        super().__init__("Project", project_id, message="Project not found")


class UserNotFoundError(ResourceNotFoundError):
    def __init__(self, user_id: str):
        super().__init__("User", user_id)


class TaskNotFoundError(ResourceNotFoundError):
    def __init__(self, task_id: str):
        super().__init__("Task", task_id, message="Task not found")


class WizardSessionNotFoundError(ResourceNotFoundError):
    def __init__(self, session_id: str):
        super().__init__("Wizard_Session", session_id, message="Wizard session not found")


# ============================================
# Validation / State Errors (400/409-type)
# ============================================

class ValidationError(ProjectDeskError):
    """Input validation failed"""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class DocumentationInputError(ValidationError):
    """Template documentation needs a project name and overview"""

    def __init__(self, field: str):
        super().__init__(f"Cannot generate documentation without {field}", field=field)
        self.code = "DOCUMENTATION_INPUT_MISSING"


class InvalidProgressError(ValidationError):
    def __init__(self, message: str):
        super().__init__(message, field="progress")
        self.code = "INVALID_PROGRESS"


class InvalidFileTypeError(ValidationError):
    """File type not allowed"""

    def __init__(self, file_type: str, allowed_types: list):
        super().__init__(
            f"File type '{file_type}' not allowed. Allowed: {', '.join(allowed_types)}"
        )
        self.code = "INVALID_FILE_TYPE"
        self.details = {"file_type": file_type, "allowed_types": allowed_types}


class WizardIncompleteError(ProjectDeskError):
    """Submission attempted while some step still fails validation"""

    status_code = 422

    def __init__(self, step: int, errors: Dict[str, str]):
        super().__init__(
            f"Step {step} is incomplete",
            code="WIZARD_INCOMPLETE",
            details={"step": step, "errors": errors}
        )


class FieldNotEditableError(ProjectDeskError):
    """Client tried to set a derived or identity field on the wizard form"""

    status_code = 422

    def __init__(self, fields: List[str]):
        super().__init__(
            f"Fields cannot be edited directly: {', '.join(fields)}",
            code="FIELD_NOT_EDITABLE",
            details={"fields": fields}
        )


class ProjectLockedError(ProjectDeskError):
    status_code = 409

    def __init__(self, project_id: str):
        super().__init__(
            "Project is completed and locked",
            code="PROJECT_LOCKED",
            details={"project_id": project_id}
        )


class UploadStateError(ProjectDeskError):
    """Base for illegal transitions of the wizard upload state machine"""

    status_code = 409


class UploadInProgressError(UploadStateError):
    def __init__(self):
        super().__init__("An upload is already in progress", code="UPLOAD_IN_PROGRESS")


class AlreadyUploadedError(UploadStateError):
    def __init__(self):
        super().__init__("Documents have already been uploaded", code="ALREADY_UPLOADED")


# ============================================
# External Service Errors
# ============================================

class ExternalServiceError(ProjectDeskError):
    """A collaborator (storage, AI, renderer) failed"""

    status_code = 502

    def __init__(self, message: str, code: str = "EXTERNAL_SERVICE_ERROR",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code=code, details=details)


class DocumentGenerationError(ExternalServiceError):
    """Document generation failed"""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message, code="DOCUMENT_GENERATION_FAILED")
        if status:
            # Provider's own HTTP status is passed through to the client
            self.status_code = status
            self.details["provider_status"] = status


class StorageUploadError(ExternalServiceError):
    def __init__(self, message: str, object_name: Optional[str] = None):
        super().__init__(message, code="STORAGE_UPLOAD_FAILED")
        if object_name:
            self.details["object_name"] = object_name


class PDFExportError(ExternalServiceError):
    def __init__(self, message: str):
        super().__init__(message, code="PDF_EXPORT_FAILED")


class TextExtractionError(ExternalServiceError):
    """No text could be pulled out of an uploaded PDF"""

    def __init__(self, message: str = "Could not extract text from PDF"):
        super().__init__(message, code="TEXT_EXTRACTION_FAILED")
