"""Final wizard step: validate everything, export and upload the documents, persist."""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from projectdesk.core.exceptions import WizardIncompleteError
from projectdesk.core.logging_config import logger
from projectdesk.models.project import Project
from projectdesk.models.user import User
from projectdesk.schemas.wizard import UploadedDocumentation
from projectdesk.services.form_store import ProjectFormStore, UploadState
from projectdesk.services.pdf_export import html_to_pdf_async
from projectdesk.services.project_service import ProjectService
from projectdesk.utils.storage_client import StorageClient

VALIDATED_STEPS = (1, 2, 3)


def _pdf_name(project_name: str, suffix: str) -> str:
    return f"{project_name.strip() or 'project'} {suffix}.pdf"


class SubmissionService:

    def __init__(self, db: AsyncSession, storage: StorageClient):
        self.db = db
        self.storage = storage

    async def _upload_html(self, html: str, project_name: str, suffix: str, folder: str) -> str:
        pdf_bytes = await html_to_pdf_async(html, title=f"{project_name} - {suffix.title()}")
        stored = await self.storage.upload_bytes_async(pdf_bytes, _pdf_name(project_name, suffix), folder=folder)
        return stored.url

    async def _upload_documents(self, store: ProjectFormStore) -> None:
        form = store.form_data
        store.begin_upload()
        try:
            quotation_url = await self._upload_html(
                form.quotation_pdf, form.project_name, "quotation", folder="quotations"
            )
            doc = form.documentation
            if isinstance(doc, UploadedDocumentation):
                documentation_url = doc.url
            else:
                documentation_url = await self._upload_html(
                    doc.html, form.project_name, "documentation", folder="documentation"
                )
        except Exception:
            store.fail_upload()
            raise
        store.complete_upload(quotation_url=quotation_url, documentation_url=documentation_url)

    async def submit(self, store: ProjectFormStore, client: Optional[User] = None) -> Project:
        """
        Persist the wizard as a pending project.

        Raises WizardIncompleteError naming the first failing step. Documents
        already uploaded by an earlier attempt are reused rather than uploaded
        again.
        """
        for step in VALIDATED_STEPS:
            result = store.check_step(step)
            if not result.ok:
                raise WizardIncompleteError(step, result.errors)

        store.generate_quotation()

        if store.upload_state != UploadState.UPLOADED:
            await self._upload_documents(store)

        form = store.form_data
        project = await ProjectService(self.db).create_project(
            form,
            client_id=str(client.id) if client is not None else None,
            quotation_url=form.quotation_url,
            documentation_url=form.documentation_url,
        )
        logger.info(
            f"Wizard submitted as project {project.id}",
            extra={"event_type": "wizard_submitted", "project_budget": form.project_budget}
        )
        return project
