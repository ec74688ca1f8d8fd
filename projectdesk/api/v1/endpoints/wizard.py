"""
Client project-submission wizard.

Each session wraps a ProjectFormStore. Step transitions go through
/next, which validates the current step first and generates the quotation
when the client reaches the documentation step.
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, File, Query, Request, UploadFile, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from projectdesk.api.deps import (
    get_documentation_service,
    get_storage,
    get_wizard_registry,
)
from projectdesk.core.database import get_db
from projectdesk.core.logging_config import logger
from projectdesk.core.rate_limiter import ai_operation_rate_limit
from projectdesk.models.user import User
from projectdesk.modules.auth.dependencies import get_current_client
from projectdesk.schemas.project import ProjectResponse
from projectdesk.schemas.wizard import GeneratedDocumentation
from projectdesk.services.documentation import DocumentationService, generate_sample_documentation
from projectdesk.services.form_store import ProjectFormStore
from projectdesk.services.submission_service import SubmissionService
from projectdesk.services.wizard_sessions import WizardSessionRegistry
from projectdesk.utils.storage_client import StorageClient

router = APIRouter()

DOCUMENTATION_STEP = 3


def session_payload(session_id: str, store: ProjectFormStore) -> Dict[str, Any]:
    return {"sessionId": session_id, **store.to_dict()}


def _field_errors(exc: PydanticValidationError) -> Dict[str, str]:
    return {".".join(str(p) for p in err["loc"]): err["msg"] for err in exc.errors()}


@router.post("/sessions", status_code=status.HTTP_201_CREATED)
async def create_session(
    current_user: User = Depends(get_current_client),
    registry: WizardSessionRegistry = Depends(get_wizard_registry),
):
    """Start a wizard prefilled with the client's profile"""
    session_id, store = registry.create(current_user.id)
    store.sync_user_data(current_user)
    logger.log_wizard_event(session_id, "started")
    return session_payload(session_id, store)


@router.get("/sessions/{session_id}")
async def get_session(
    session_id: str,
    current_user: User = Depends(get_current_client),
    registry: WizardSessionRegistry = Depends(get_wizard_registry),
):
    return session_payload(session_id, registry.get(session_id, current_user.id))


@router.patch("/sessions/{session_id}")
async def update_session(
    session_id: str,
    partial: Dict[str, Any] = Body(...),
    current_user: User = Depends(get_current_client),
    registry: WizardSessionRegistry = Depends(get_wizard_registry),
):
    """Merge client-editable fields into the form; step rules are not checked here"""
    store = registry.get(session_id, current_user.id)
    try:
        store.apply_client_edits(partial)
    except PydanticValidationError as e:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"code": "INVALID_FIELD_TYPE", "message": "Invalid field values", "errors": _field_errors(e)},
        )
    return session_payload(session_id, store)


@router.post("/sessions/{session_id}/next")
async def next_step(
    session_id: str,
    current_user: User = Depends(get_current_client),
    registry: WizardSessionRegistry = Depends(get_wizard_registry),
):
    store = registry.get(session_id, current_user.id)
    if not await store.validate_current_step():
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "code": "STEP_INVALID",
                "message": f"Step {store.step} has errors",
                "step": store.step,
                "errors": store.validation_errors,
            },
        )

    store.next_step()
    if store.step == DOCUMENTATION_STEP:
        store.generate_quotation()
    return session_payload(session_id, store)


@router.post("/sessions/{session_id}/prev")
async def prev_step(
    session_id: str,
    current_user: User = Depends(get_current_client),
    registry: WizardSessionRegistry = Depends(get_wizard_registry),
):
    store = registry.get(session_id, current_user.id)
    store.prev_step()
    return session_payload(session_id, store)


@router.post("/sessions/{session_id}/reset")
async def reset_session(
    session_id: str,
    current_user: User = Depends(get_current_client),
    registry: WizardSessionRegistry = Depends(get_wizard_registry),
):
    store = registry.get(session_id, current_user.id)
    store.reset_form()
    store.sync_user_data(current_user)
    return session_payload(session_id, store)


@router.post("/sessions/{session_id}/quotation")
async def generate_quotation(
    session_id: str,
    force: bool = Query(False, description="Re-render even if a quotation exists"),
    current_user: User = Depends(get_current_client),
    registry: WizardSessionRegistry = Depends(get_wizard_registry),
):
    store = registry.get(session_id, current_user.id)
    generated = store.generate_quotation(force=force)
    return {"generated": generated, **session_payload(session_id, store)}


@router.post("/sessions/{session_id}/documentation/generate")
async def generate_documentation(
    session_id: str,
    current_user: User = Depends(get_current_client),
    registry: WizardSessionRegistry = Depends(get_wizard_registry),
):
    """Fill the documentation template from the project details"""
    store = registry.get(session_id, current_user.id)
    form = store.form_data
    html = generate_sample_documentation(form.project_name, form.project_overview, form.development_areas)
    store.update_form_data({"documentation": GeneratedDocumentation(html=html)})
    return session_payload(session_id, store)


@router.post("/sessions/{session_id}/documentation/upload")
async def upload_documentation(
    session_id: str,
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_client),
    registry: WizardSessionRegistry = Depends(get_wizard_registry),
    service: DocumentationService = Depends(get_documentation_service),
):
    store = registry.get(session_id, current_user.id)
    uploaded = await service.upload_documentation(await file.read(), file.filename or "documentation.pdf")
    store.update_form_data({"documentation": uploaded, "documentationUrl": uploaded.url})
    return session_payload(session_id, store)


@router.post("/sessions/{session_id}/documentation/improve")
@ai_operation_rate_limit()
async def improve_documentation(
    request: Request,
    session_id: str,
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_client),
    registry: WizardSessionRegistry = Depends(get_wizard_registry),
    service: DocumentationService = Depends(get_documentation_service),
):
    """Rewrite an uploaded client document with Claude; on failure the form is left as it was"""
    store = registry.get(session_id, current_user.id)
    improved = await service.improve_from_pdf(
        await file.read(),
        file.filename or "documentation.pdf",
        project_name=store.form_data.project_name or None,
    )
    store.update_form_data({"documentation": improved})
    return session_payload(session_id, store)


@router.post("/sessions/{session_id}/submit", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def submit(
    session_id: str,
    current_user: User = Depends(get_current_client),
    registry: WizardSessionRegistry = Depends(get_wizard_registry),
    storage: StorageClient = Depends(get_storage),
    db: AsyncSession = Depends(get_db),
):
    store = registry.get(session_id, current_user.id)
    project = await SubmissionService(db, storage).submit(store, client=current_user)
    # The wizard is only dropped once the project is safely stored
    await db.commit()
    registry.discard(session_id)
    logger.log_wizard_event(session_id, "submitted", project_ref=project.id)
    return project
