import anthropic
import httpx
import pytest
from httpx import AsyncClient

from projectdesk.core.exceptions import ExternalServiceError
from projectdesk.core.security import create_access_token, get_password_hash
from projectdesk.models.user import User, UserRole
from projectdesk.services.pdf_export import html_to_pdf

WIZARD = "/api/v1/wizard/sessions"


@pytest.fixture
def brief_pdf() -> bytes:
    return html_to_pdf("<h1>Client brief</h1><p>Warehouse staff record stock movements.</p>")


async def start_session(client: AsyncClient, headers: dict) -> dict:
    response = await client.post(WIZARD, headers=headers)
    assert response.status_code == 201
    return response.json()


async def fill_first_two_steps(client: AsyncClient, headers: dict, session_id: str, project_details: dict) -> dict:
    await client.patch(f"{WIZARD}/{session_id}", json=project_details, headers=headers)
    await client.post(f"{WIZARD}/{session_id}/next", headers=headers)
    await client.patch(
        f"{WIZARD}/{session_id}",
        json={"developmentAreas": ["Web Development", "UI/UX Design"], "seniorDevelopers": 1},
        headers=headers,
    )
    response = await client.post(f"{WIZARD}/{session_id}/next", headers=headers)
    assert response.status_code == 200
    return response.json()


class TestSession:
    """Creating and reading a wizard session"""

    async def test_session_prefilled_from_profile(self, client: AsyncClient, auth_headers, client_user):
        data = await start_session(client, auth_headers)

        assert data["step"] == 1
        assert data["uploadState"] == "idle"
        assert data["validationErrors"] == {}
        assert data["formData"]["clientEmail"] == client_user.email
        assert data["formData"]["clientName"] == client_user.name
        assert data["formData"]["currency"] == "INR"

    async def test_get_session(self, client: AsyncClient, auth_headers):
        session_id = (await start_session(client, auth_headers))["sessionId"]

        response = await client.get(f"{WIZARD}/{session_id}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["sessionId"] == session_id

    async def test_other_clients_session_is_hidden(self, client: AsyncClient, auth_headers, db_session):
        session_id = (await start_session(client, auth_headers))["sessionId"]
        other = User(
            email="other.client@example.com",
            hashed_password=get_password_hash("otherpassword123"),
            name="Other Client",
            role=UserRole.CLIENT,
            is_active=True,
        )
        db_session.add(other)
        await db_session.commit()
        token = create_access_token({"sub": other.id, "email": other.email, "role": "client"})

        response = await client.get(f"{WIZARD}/{session_id}", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 404

    async def test_admin_cannot_use_wizard(self, client: AsyncClient, admin_auth_headers):
        response = await client.post(WIZARD, headers=admin_auth_headers)

        assert response.status_code == 403

    async def test_unknown_session(self, client: AsyncClient, auth_headers):
        response = await client.get(f"{WIZARD}/does-not-exist", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["code"] == "WIZARD_SESSION_NOT_FOUND"


class TestNavigation:
    """PATCH, next and prev"""

    async def test_next_blocked_by_invalid_step(self, client: AsyncClient, auth_headers):
        session_id = (await start_session(client, auth_headers))["sessionId"]
        await client.patch(f"{WIZARD}/{session_id}", json={"projectName": "Short App"}, headers=auth_headers)

        response = await client.post(f"{WIZARD}/{session_id}/next", headers=auth_headers)

        assert response.status_code == 422
        data = response.json()
        assert data["code"] == "STEP_INVALID"
        assert data["step"] == 1
        assert data["errors"]["projectName"] == "Project name must be at least 10 characters"

        session = (await client.get(f"{WIZARD}/{session_id}", headers=auth_headers)).json()
        assert session["step"] == 1
        assert "projectName" in session["validationErrors"]

    async def test_invalid_field_type(self, client: AsyncClient, auth_headers):
        session_id = (await start_session(client, auth_headers))["sessionId"]

        response = await client.patch(
            f"{WIZARD}/{session_id}", json={"seniorDevelopers": "many"}, headers=auth_headers
        )

        assert response.status_code == 422
        assert response.json()["code"] == "INVALID_FIELD_TYPE"

    @pytest.mark.parametrize("partial", [
        {"quotationPdf": "<p>cheap</p>", "projectBudget": 1},
        {"clientEmail": "someone.else@example.com"},
        {"documentation": {"kind": "uploaded", "fileName": "brief.pdf", "url": "http://files/brief.pdf"}},
        {"documentationUrl": "http://files/brief.pdf", "quotationUrl": "http://files/q.pdf"},
    ])
    async def test_derived_fields_not_editable(self, client: AsyncClient, auth_headers, client_user, partial):
        session_id = (await start_session(client, auth_headers))["sessionId"]

        response = await client.patch(
            f"{WIZARD}/{session_id}", json={"seniorDevelopers": 3, **partial}, headers=auth_headers
        )

        assert response.status_code == 422
        data = response.json()
        assert data["code"] == "FIELD_NOT_EDITABLE"
        assert set(data["details"]["fields"]) == set(partial)

        form = (await client.get(f"{WIZARD}/{session_id}", headers=auth_headers)).json()["formData"]
        assert form["seniorDevelopers"] == 0
        assert form["clientEmail"] == client_user.email
        assert form["projectBudget"] == 0
        assert form["documentation"] == {"kind": "none"}

    async def test_reaching_documentation_step_generates_quotation(
        self, client: AsyncClient, auth_headers, project_details
    ):
        session_id = (await start_session(client, auth_headers))["sessionId"]

        data = await fill_first_two_steps(client, auth_headers, session_id, project_details)

        assert data["step"] == 3
        assert data["formData"]["projectBudget"] == 125000
        assert "₹1,25,000" in data["formData"]["quotationPdf"]

    async def test_prev_at_first_step(self, client: AsyncClient, auth_headers):
        session_id = (await start_session(client, auth_headers))["sessionId"]

        response = await client.post(f"{WIZARD}/{session_id}/prev", headers=auth_headers)

        assert response.json()["step"] == 1

    async def test_reset(self, client: AsyncClient, auth_headers, project_details, client_user):
        session_id = (await start_session(client, auth_headers))["sessionId"]
        await fill_first_two_steps(client, auth_headers, session_id, project_details)

        response = await client.post(f"{WIZARD}/{session_id}/reset", headers=auth_headers)

        data = response.json()
        assert data["step"] == 1
        assert data["formData"]["projectName"] == ""
        assert data["formData"]["quotationPdf"] == ""
        assert data["formData"]["clientEmail"] == client_user.email


class TestQuotation:

    async def test_quotation_not_regenerated_without_force(
        self, client: AsyncClient, auth_headers, project_details
    ):
        session_id = (await start_session(client, auth_headers))["sessionId"]
        await fill_first_two_steps(client, auth_headers, session_id, project_details)
        await client.patch(f"{WIZARD}/{session_id}", json={"juniorDevelopers": 2}, headers=auth_headers)

        stale = await client.post(f"{WIZARD}/{session_id}/quotation", headers=auth_headers)
        forced = await client.post(f"{WIZARD}/{session_id}/quotation?force=true", headers=auth_headers)

        assert stale.json()["generated"] is False
        assert stale.json()["formData"]["projectBudget"] == 125000
        assert forced.json()["generated"] is True
        assert forced.json()["formData"]["projectBudget"] == 185000


class TestDocumentation:
    """Template, upload and AI documentation paths"""

    async def test_generate_from_template(self, client: AsyncClient, auth_headers, project_details):
        session_id = (await start_session(client, auth_headers))["sessionId"]
        await client.patch(f"{WIZARD}/{session_id}", json=project_details, headers=auth_headers)

        response = await client.post(f"{WIZARD}/{session_id}/documentation/generate", headers=auth_headers)

        assert response.status_code == 200
        doc = response.json()["formData"]["documentation"]
        assert doc["kind"] == "generated"
        assert "Inventory Tracker Platform - Developer Documentation" in doc["html"]

    async def test_generate_without_project_details(self, client: AsyncClient, auth_headers):
        session_id = (await start_session(client, auth_headers))["sessionId"]

        response = await client.post(f"{WIZARD}/{session_id}/documentation/generate", headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["details"]["field"] == "projectName"

    async def test_upload_pdf(self, client: AsyncClient, auth_headers, brief_pdf):
        session_id = (await start_session(client, auth_headers))["sessionId"]

        response = await client.post(
            f"{WIZARD}/{session_id}/documentation/upload",
            files={"file": ("brief.pdf", brief_pdf, "application/pdf")},
            headers=auth_headers,
        )

        assert response.status_code == 200
        form = response.json()["formData"]
        assert form["documentation"]["kind"] == "uploaded"
        assert form["documentation"]["fileName"] == "brief.pdf"
        assert form["documentationUrl"] == form["documentation"]["url"]

    async def test_upload_rejects_non_pdf(self, client: AsyncClient, auth_headers):
        session_id = (await start_session(client, auth_headers))["sessionId"]

        response = await client.post(
            f"{WIZARD}/{session_id}/documentation/upload",
            files={"file": ("notes.txt", b"plain notes", "text/plain")},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_FILE_TYPE"

    async def test_improve_with_ai(self, client: AsyncClient, auth_headers, brief_pdf, fake_claude):
        session_id = (await start_session(client, auth_headers))["sessionId"]

        response = await client.post(
            f"{WIZARD}/{session_id}/documentation/improve",
            files={"file": ("brief.pdf", brief_pdf, "application/pdf")},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert fake_claude.call_count == 1
        doc = response.json()["formData"]["documentation"]
        assert doc["kind"] == "improved"
        assert "<h2>1. Project Overview</h2>" in doc["html"]

    async def test_improve_failure_keeps_form(self, client: AsyncClient, auth_headers, brief_pdf, fake_claude):
        session_id = (await start_session(client, auth_headers))["sessionId"]
        request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        fake_claude.error = anthropic.APIStatusError(
            "overloaded", response=httpx.Response(529, request=request), body=None
        )

        response = await client.post(
            f"{WIZARD}/{session_id}/documentation/improve",
            files={"file": ("brief.pdf", brief_pdf, "application/pdf")},
            headers=auth_headers,
        )

        assert response.status_code == 529
        assert response.json()["code"] == "DOCUMENT_GENERATION_FAILED"
        session = (await client.get(f"{WIZARD}/{session_id}", headers=auth_headers)).json()
        assert session["formData"]["documentation"] == {"kind": "none"}


class TestSubmit:
    """POST /sessions/{id}/submit"""

    async def test_submit_incomplete_wizard(self, client: AsyncClient, auth_headers):
        session_id = (await start_session(client, auth_headers))["sessionId"]

        response = await client.post(f"{WIZARD}/{session_id}/submit", headers=auth_headers)

        assert response.status_code == 422
        data = response.json()
        assert data["code"] == "WIZARD_INCOMPLETE"
        assert data["details"]["step"] == 1

    async def test_submit_with_generated_documentation(
        self, client: AsyncClient, auth_headers, project_details, client_user
    ):
        session_id = (await start_session(client, auth_headers))["sessionId"]
        await fill_first_two_steps(client, auth_headers, session_id, project_details)
        await client.post(f"{WIZARD}/{session_id}/documentation/generate", headers=auth_headers)
        await client.post(f"{WIZARD}/{session_id}/next", headers=auth_headers)

        response = await client.post(f"{WIZARD}/{session_id}/submit", headers=auth_headers)

        assert response.status_code == 201
        project = response.json()
        assert project["status"] == "pending"
        assert project["projectName"] == project_details["projectName"]
        assert project["clientEmail"] == client_user.email
        assert project["clientId"] == client_user.id
        assert project["projectBudget"] == 125000
        assert project["quotationUrl"].endswith(".pdf")
        assert project["documentationUrl"].endswith(".pdf")
        assert project["progress"] == 0

        gone = await client.get(f"{WIZARD}/{session_id}", headers=auth_headers)
        assert gone.status_code == 404

    async def test_submit_reuses_uploaded_documentation(
        self, client: AsyncClient, auth_headers, project_details, brief_pdf
    ):
        session_id = (await start_session(client, auth_headers))["sessionId"]
        await fill_first_two_steps(client, auth_headers, session_id, project_details)
        upload = await client.post(
            f"{WIZARD}/{session_id}/documentation/upload",
            files={"file": ("brief.pdf", brief_pdf, "application/pdf")},
            headers=auth_headers,
        )
        uploaded_url = upload.json()["formData"]["documentation"]["url"]

        response = await client.post(f"{WIZARD}/{session_id}/submit", headers=auth_headers)

        assert response.status_code == 201
        assert response.json()["documentationUrl"] == uploaded_url

    async def test_submitted_project_listed_for_client(
        self, client: AsyncClient, auth_headers, project_details
    ):
        session_id = (await start_session(client, auth_headers))["sessionId"]
        await fill_first_two_steps(client, auth_headers, session_id, project_details)
        await client.post(f"{WIZARD}/{session_id}/documentation/generate", headers=auth_headers)
        await client.post(f"{WIZARD}/{session_id}/submit", headers=auth_headers)

        response = await client.get("/api/v1/projects/mine", headers=auth_headers)

        assert response.json()["total"] == 1

    async def test_budget_follows_team_after_rejected_tampering(
        self, client: AsyncClient, auth_headers, project_details
    ):
        session_id = (await start_session(client, auth_headers))["sessionId"]
        await client.patch(f"{WIZARD}/{session_id}", json=project_details, headers=auth_headers)
        await client.post(f"{WIZARD}/{session_id}/next", headers=auth_headers)
        await client.patch(
            f"{WIZARD}/{session_id}",
            json={"developmentAreas": ["Web Development"], "seniorDevelopers": 3},
            headers=auth_headers,
        )
        tampered = await client.patch(
            f"{WIZARD}/{session_id}",
            json={"quotationPdf": "<p>cheap</p>", "projectBudget": 1},
            headers=auth_headers,
        )
        await client.post(f"{WIZARD}/{session_id}/next", headers=auth_headers)
        await client.post(f"{WIZARD}/{session_id}/documentation/generate", headers=auth_headers)

        response = await client.post(f"{WIZARD}/{session_id}/submit", headers=auth_headers)

        assert tampered.status_code == 422
        assert response.status_code == 201
        assert response.json()["projectBudget"] == 275000

    async def test_failed_commit_keeps_session(
        self, client: AsyncClient, auth_headers, project_details, db_session, monkeypatch
    ):
        session_id = (await start_session(client, auth_headers))["sessionId"]
        await fill_first_two_steps(client, auth_headers, session_id, project_details)
        await client.post(f"{WIZARD}/{session_id}/documentation/generate", headers=auth_headers)

        async def failing_commit():
            raise ExternalServiceError("Database unavailable")

        monkeypatch.setattr(db_session, "commit", failing_commit)

        response = await client.post(f"{WIZARD}/{session_id}/submit", headers=auth_headers)

        assert response.status_code == 502
        session = await client.get(f"{WIZARD}/{session_id}", headers=auth_headers)
        assert session.status_code == 200
        assert session.json()["formData"]["projectName"] == project_details["projectName"]
