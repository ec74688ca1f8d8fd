import pytest
from httpx import AsyncClient

from projectdesk.models.project import Project
from projectdesk.schemas.wizard import ProjectFormData
from projectdesk.services.project_service import ProjectService
from projectdesk.services.quotation import generate_quotation


async def submit_project(db_session, client_user, **overrides) -> Project:
    values = dict(
        client_name=client_user.name,
        client_email=client_user.email,
        project_name="Inventory Tracker Platform",
        project_overview="o" * 120,
        development_areas=["Web Development"],
        senior_developers=1,
    )
    values.update(overrides)
    form = ProjectFormData(**values)
    html, breakdown = generate_quotation(form)
    form = form.model_copy(update={"quotation_pdf": html, "project_budget": breakdown.total})

    project = await ProjectService(db_session).create_project(form, client_id=client_user.id)
    await db_session.commit()
    return project


@pytest.fixture
async def project(db_session, client_user) -> Project:
    return await submit_project(db_session, client_user)


@pytest.fixture
async def assigned_project(db_session, project, developer_user) -> Project:
    await ProjectService(db_session).assign_developer(project.id, developer_user.id)
    await db_session.commit()
    return project


class TestClientProjects:
    """Client views of their own projects"""

    async def test_list_mine(self, client: AsyncClient, auth_headers, project):
        response = await client.get("/api/v1/projects/mine", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["projects"][0]["id"] == project.id
        assert data["projects"][0]["projectBudget"] == 125000

    async def test_recent_limit(self, client: AsyncClient, auth_headers, db_session, client_user):
        for i in range(3):
            await submit_project(db_session, client_user, project_name=f"Project number {i}")

        response = await client.get("/api/v1/projects/mine/recent?limit=2", headers=auth_headers)

        assert response.json()["total"] == 2

    async def test_filter_by_status_list(self, client: AsyncClient, auth_headers, db_session, project, client_user):
        other = await submit_project(db_session, client_user)
        await ProjectService(db_session).update_project_status(other.id, "in-progress")
        await db_session.commit()

        pending = await client.get("/api/v1/projects/mine/status/pending", headers=auth_headers)
        both = await client.get("/api/v1/projects/mine/status/pending,in-progress", headers=auth_headers)

        assert pending.json()["total"] == 1
        assert both.json()["total"] == 2

    async def test_unknown_status_filter(self, client: AsyncClient, auth_headers, project):
        response = await client.get("/api/v1/projects/mine/status/archived", headers=auth_headers)

        assert response.status_code == 400

    async def test_get_own_project(self, client: AsyncClient, auth_headers, project):
        response = await client.get(f"/api/v1/projects/{project.id}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["status"] == "pending"

    async def test_missing_project(self, client: AsyncClient, auth_headers):
        response = await client.get("/api/v1/projects/00000000-0000-0000-0000-000000000000", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["message"] == "Project not found"

    async def test_quotation_pdf(self, client: AsyncClient, auth_headers, project):
        response = await client.get(f"/api/v1/projects/{project.id}/quotation.pdf", headers=auth_headers)

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.content.startswith(b"%PDF")

    async def test_unassigned_developer_cannot_see_project(
        self, client: AsyncClient, developer_auth_headers, project
    ):
        response = await client.get(f"/api/v1/projects/{project.id}", headers=developer_auth_headers)

        assert response.status_code == 404


class TestAdminProjects:
    """Admin review of all projects"""

    async def test_list_all(self, client: AsyncClient, admin_auth_headers, project):
        response = await client.get("/api/v1/admin/projects", headers=admin_auth_headers)

        assert response.status_code == 200
        assert response.json()["total"] == 1

    async def test_list_filtered_by_status(self, client: AsyncClient, admin_auth_headers, project):
        response = await client.get(
            "/api/v1/admin/projects?status=completed&status=rejected", headers=admin_auth_headers
        )

        assert response.json()["total"] == 0

    async def test_client_cannot_list_all(self, client: AsyncClient, auth_headers, project):
        response = await client.get("/api/v1/admin/projects", headers=auth_headers)

        assert response.status_code == 403
        assert response.json()["detail"] == "Admin access required"

    async def test_admin_sees_any_project(self, client: AsyncClient, admin_auth_headers, project):
        response = await client.get(f"/api/v1/projects/{project.id}", headers=admin_auth_headers)

        assert response.status_code == 200

    async def test_start_project(self, client: AsyncClient, admin_auth_headers, project):
        response = await client.patch(
            f"/api/v1/admin/projects/{project.id}/status",
            json={"status": "in-progress"},
            headers=admin_auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["status"] == "in-progress"
        assert response.json()["startDate"] is not None

    async def test_reject_with_reason(self, client: AsyncClient, admin_auth_headers, project):
        response = await client.patch(
            f"/api/v1/admin/projects/{project.id}/status",
            json={"status": "rejected", "rejectionReason": "Budget too low"},
            headers=admin_auth_headers,
        )

        assert response.json()["rejectionReason"] == "Budget too low"

    async def test_invalid_status_value(self, client: AsyncClient, admin_auth_headers, project):
        response = await client.patch(
            f"/api/v1/admin/projects/{project.id}/status",
            json={"status": "archived"},
            headers=admin_auth_headers,
        )

        assert response.status_code == 422

    async def test_assign_developer(self, client: AsyncClient, admin_auth_headers, project, developer_user):
        response = await client.patch(
            f"/api/v1/admin/projects/{project.id}/assign",
            json={"developerId": developer_user.id},
            headers=admin_auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["developerId"] == developer_user.id

    async def test_assign_client_as_developer(self, client: AsyncClient, admin_auth_headers, project, client_user):
        response = await client.patch(
            f"/api/v1/admin/projects/{project.id}/assign",
            json={"developerId": client_user.id},
            headers=admin_auth_headers,
        )

        assert response.status_code == 404

    async def test_final_cost_and_deadline(self, client: AsyncClient, admin_auth_headers, project):
        cost = await client.patch(
            f"/api/v1/admin/projects/{project.id}/final-cost",
            json={"finalCost": 110000},
            headers=admin_auth_headers,
        )
        deadline = await client.patch(
            f"/api/v1/admin/projects/{project.id}/deadline",
            json={"deadline": "2025-06-30T00:00:00"},
            headers=admin_auth_headers,
        )

        assert cost.json()["finalCost"] == 110000
        assert deadline.json()["deadline"].startswith("2025-06-30")

    async def test_negative_final_cost(self, client: AsyncClient, admin_auth_headers, project):
        response = await client.patch(
            f"/api/v1/admin/projects/{project.id}/final-cost",
            json={"finalCost": -1},
            headers=admin_auth_headers,
        )

        assert response.status_code == 422


class TestDeveloperProjects:
    """Progress reporting by the assigned developer"""

    async def test_list_assigned(self, client: AsyncClient, developer_auth_headers, assigned_project):
        response = await client.get("/api/v1/developer/projects", headers=developer_auth_headers)

        assert response.status_code == 200
        assert [p["id"] for p in response.json()["projects"]] == [assigned_project.id]

    async def test_manual_progress(self, client: AsyncClient, developer_auth_headers, assigned_project):
        url = f"/api/v1/developer/projects/{assigned_project.id}/progress"

        first = await client.patch(url, json={"progress": 50}, headers=developer_auth_headers)
        backwards = await client.patch(url, json={"progress": 30}, headers=developer_auth_headers)

        assert first.status_code == 200
        assert first.json()["progress"] == 50
        assert backwards.status_code == 400
        assert backwards.json()["code"] == "INVALID_PROGRESS"

    async def test_completed_project_is_locked(self, client: AsyncClient, developer_auth_headers, assigned_project):
        url = f"/api/v1/developer/projects/{assigned_project.id}/progress"

        done = await client.patch(url, json={"progress": 100}, headers=developer_auth_headers)
        again = await client.patch(url, json={"progress": 100}, headers=developer_auth_headers)

        assert done.json()["status"] == "completed"
        assert again.status_code == 409
        assert again.json()["code"] == "PROJECT_LOCKED"

    async def test_task_checklist(self, client: AsyncClient, developer_auth_headers, assigned_project):
        base = f"/api/v1/developer/projects/{assigned_project.id}/tasks"

        first = await client.post(base, json={"title": "Design schema"}, headers=developer_auth_headers)
        await client.post(base, json={"title": "Build API"}, headers=developer_auth_headers)
        response = await client.patch(
            f"{base}/{first.json()['id']}", json={"completed": True}, headers=developer_auth_headers
        )

        assert first.status_code == 201
        data = response.json()
        assert data["progressType"] == "task-based"
        assert data["progress"] == 50
        assert len(data["tasks"]) == 2

    async def test_other_developer_cannot_update(self, client: AsyncClient, developer_auth_headers, project):
        response = await client.patch(
            f"/api/v1/developer/projects/{project.id}/progress",
            json={"progress": 10},
            headers=developer_auth_headers,
        )

        assert response.status_code == 404

    async def test_client_cannot_report_progress(self, client: AsyncClient, auth_headers, project):
        response = await client.patch(
            f"/api/v1/developer/projects/{project.id}/progress",
            json={"progress": 10},
            headers=auth_headers,
        )

        assert response.status_code == 403
