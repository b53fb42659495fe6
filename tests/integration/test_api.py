"""Integration tests for API endpoints."""

import pytest
from httpx import AsyncClient

from app.core.deployments import DeploymentService
from app.core.exceptions import HostingDeployError
from app.main import app
from app.models.project import Project

DEPLOY_URL = "/v1/deployments/project-1/deployment-1/deploy"


class TestHealthEndpoint:
    """Tests for health check endpoint."""

    @pytest.mark.asyncio
    async def test_health_check(self, client: AsyncClient):
        """Test health check returns healthy status."""
        response = await client.get("/v1/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "version" in data
        assert "environment" in data
        assert "timestamp" in data
        assert data["data_store"] == "InMemoryDataStore"
        assert data["auth_disabled"] is False


class TestDeployEndpoint:
    """Tests for the deploy invocation endpoint."""

    @pytest.mark.asyncio
    async def test_deploy(self, client: AsyncClient):
        response = await client.post(
            DEPLOY_URL,
            json={"branch": "main", "hostingProviderIds": ["hosting-fb", "hosting-cf"]},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["id"].startswith("deploy-")
        assert data["step"] == "success"
        assert data["progress"] == 100
        assert data["message"] == "Deployment completed successfully"
        assert "error" not in data
        assert data["deployments"] == [
            {
                "providerId": "hosting-fb",
                "provider": "firebase-hosting",
                "status": "success",
                "url": "https://acme-site.example.test",
            },
            {
                "providerId": "hosting-cf",
                "provider": "cloudflare-pages",
                "status": "success",
                "url": "https://acme-pages.example.test",
            },
        ]

    @pytest.mark.asyncio
    async def test_deploy_records_results_on_bindings(self, client: AsyncClient):
        await client.post(
            DEPLOY_URL, json={"branch": "main", "hostingProviderIds": ["hosting-cf"]}
        )

        response = await client.get("/v1/projects/project-1/deployments/deployment-1")

        hosting = {h["id"]: h for h in response.json()["hosting"]}
        assert hosting["hosting-cf"]["status"] == "success"
        assert hosting["hosting-cf"]["url"] == "https://acme-pages.example.test"
        assert "status" not in hosting["hosting-fb"]

    @pytest.mark.asyncio
    async def test_partial_failure_is_still_200(
        self, client: AsyncClient, cloudflare_deployer
    ):
        cloudflare_deployer.failures["acme-pages"] = HostingDeployError(
            "cloudflare-pages", "Cloudflare token not configured"
        )

        response = await client.post(
            DEPLOY_URL,
            json={"branch": "main", "hostingProviderIds": ["hosting-fb", "hosting-cf"]},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Deployment completed with some errors"
        assert data["deployments"][1] == {
            "providerId": "hosting-cf",
            "provider": "cloudflare-pages",
            "status": "error",
            "error": "Cloudflare token not configured",
        }

    @pytest.mark.asyncio
    async def test_fatal_failure_is_reported_in_body(self, client: AsyncClient):
        response = await client.post(
            DEPLOY_URL, json={"branch": "main", "hostingProviderIds": ["unknown"]}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["step"] == "error"
        assert data["progress"] == 0
        assert data["error"] == "No valid hosting providers selected"
        assert data["deployments"] == []

    @pytest.mark.asyncio
    async def test_unauthenticated(self, client: AsyncClient):
        response = await client.post(
            DEPLOY_URL,
            json={"branch": "main", "hostingProviderIds": ["hosting-fb"]},
            headers={"Authorization": ""},
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_invalid_token(self, client: AsyncClient):
        response = await client.post(
            DEPLOY_URL,
            json={"branch": "main", "hostingProviderIds": ["hosting-fb"]},
            headers={"Authorization": "Bearer forged"},
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_session_cookie(self, client: AsyncClient):
        response = await client.post(
            DEPLOY_URL,
            json={"branch": "main", "hostingProviderIds": ["hosting-fb"]},
            headers={"Authorization": "", "Cookie": "auth_session=valid-token"},
        )

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_not_owner(self, client: AsyncClient, seeded_store):
        await DeploymentService(seeded_store).save_project(
            Project(id="project-2", name="Other", user_id="someone-else")
        )

        response = await client.post(
            "/v1/deployments/project-2/deployment-1/deploy",
            json={"branch": "main", "hostingProviderIds": ["hosting-fb"]},
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_unknown_project(self, client: AsyncClient):
        response = await client.post(
            "/v1/deployments/missing/deployment-1/deploy",
            json={"branch": "main", "hostingProviderIds": ["hosting-fb"]},
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "PROJECTNOTFOUNDERROR"

    @pytest.mark.asyncio
    async def test_unknown_deployment(self, client: AsyncClient):
        response = await client.post(
            "/v1/deployments/project-1/missing/deploy",
            json={"branch": "main", "hostingProviderIds": ["hosting-fb"]},
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {"branch": "", "hostingProviderIds": ["hosting-fb"]},
            {"branch": "main", "hostingProviderIds": []},
            {"branch": "main"},
        ],
    )
    async def test_invalid_body(self, client: AsyncClient, body):
        response = await client.post(DEPLOY_URL, json=body)

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_auth_disabled_uses_dev_user(self, client: AsyncClient):
        services = app.state.services
        services.settings = services.settings.model_copy(
            update={"auth_disabled": True, "dev_user_id": "user-1"}
        )

        response = await client.post(
            DEPLOY_URL,
            json={"branch": "main", "hostingProviderIds": ["hosting-fb"]},
            headers={"Authorization": ""},
        )

        assert response.status_code == 200


class TestDeploymentRecordEndpoints:
    """Tests for deployment and hosting record management."""

    @pytest.mark.asyncio
    async def test_list_deployments(self, client: AsyncClient):
        response = await client.get("/v1/projects/project-1/deployments")

        assert response.status_code == 200
        data = response.json()
        assert [d["id"] for d in data] == ["deployment-1"]
        assert data[0]["repository"]["fullName"] == "acme/site"

    @pytest.mark.asyncio
    async def test_create_and_delete_deployment(self, client: AsyncClient):
        response = await client.post(
            "/v1/projects/project-1/deployments",
            json={"name": "docs", "repository": {"owner": "acme", "name": "docs"}},
        )

        assert response.status_code == 201
        created = response.json()
        assert created["id"].startswith("deployment-")
        assert created["hosting"] == []

        listed = await client.get("/v1/projects/project-1/deployments")
        assert [d["id"] for d in listed.json()] == ["deployment-1", created["id"]]

        deleted = await client.delete(f"/v1/projects/project-1/deployments/{created['id']}")
        assert deleted.status_code == 204

        missing = await client.get(f"/v1/projects/project-1/deployments/{created['id']}")
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_add_and_remove_hosting(self, client: AsyncClient):
        response = await client.post(
            "/v1/projects/project-1/deployments/deployment-1/hosting",
            json={"provider": "cloudflare-pages", "name": "acme-preview"},
        )

        assert response.status_code == 201
        hosting_id = response.json()["id"]

        deployment = await client.get("/v1/projects/project-1/deployments/deployment-1")
        assert hosting_id in [h["id"] for h in deployment.json()["hosting"]]

        removed = await client.delete(
            f"/v1/projects/project-1/deployments/deployment-1/hosting/{hosting_id}"
        )
        assert removed.status_code == 204

        again = await client.delete(
            f"/v1/projects/project-1/deployments/deployment-1/hosting/{hosting_id}"
        )
        assert again.status_code == 404

    @pytest.mark.asyncio
    async def test_add_hosting_unknown_provider(self, client: AsyncClient):
        response = await client.post(
            "/v1/projects/project-1/deployments/deployment-1/hosting",
            json={"provider": "netlify", "name": "acme"},
        )

        assert response.status_code == 422
