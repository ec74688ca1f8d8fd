# Pydantic schemas
from projectdesk.schemas.wizard import (
    ProjectFormData,
    NoDocumentation,
    UploadedDocumentation,
    GeneratedDocumentation,
    ImprovedDocumentation,
    StepPassed,
    StepFailed,
    validate_step,
)
from projectdesk.schemas.quotation import Currency, QuotationBreakdown, QuotationLineItem
from projectdesk.schemas.project import ProjectResponse, ProjectListResponse, StatusUpdate
from projectdesk.schemas.auth import UserRegister, UserLogin, GoogleSignIn, Token, UserResponse
