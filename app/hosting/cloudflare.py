"""Cloudflare Pages deployer.

Pages projects here are connected to their Git repository on the Cloudflare
side, so a deploy asks Cloudflare to build and publish the requested branch
rather than uploading the locally built output.
"""

from pathlib import Path
from typing import Any

import httpx

from app.core.crypto import TokenCipher
from app.core.exceptions import CloudflareAPIError, HostingDeployError
from app.core.users import UserProfileService
from app.hosting.base import HostingDeployer, HostingDeployResult
from app.models.deployment import DeployContext, Hosting, HostingProvider


def _first_error(payload: Any) -> str | None:
    if not isinstance(payload, dict):
        return None
    errors = payload.get("errors") or []
    if errors and isinstance(errors[0], dict) and errors[0].get("message"):
        return errors[0]["message"]
    return payload.get("message")


class CloudflareClient:
    """Thin client for the Cloudflare v4 API envelope."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        api_base_url: str = "https://api.cloudflare.com/client/v4",
    ):
        self.http = http
        self.api_base_url = api_base_url.rstrip("/")

    async def request(self, token: str, method: str, endpoint: str, **kwargs: Any) -> Any:
        """Call the API and return the envelope's ``result``.

        Raises:
            CloudflareAPIError: On HTTP errors or ``success: false``
        """
        response = await self.http.request(
            method,
            f"{self.api_base_url}{endpoint}",
            headers={"Authorization": f"Bearer {token}"},
            **kwargs,
        )
        try:
            payload = response.json()
        except ValueError:
            payload = None

        if response.is_error:
            raise CloudflareAPIError(
                _first_error(payload)
                or f"HTTP {response.status_code}: {response.reason_phrase}",
                response.status_code,
            )
        if not isinstance(payload, dict) or not payload.get("success"):
            raise CloudflareAPIError(
                _first_error(payload) or "Cloudflare API request failed",
                response.status_code,
            )
        return payload.get("result")

    async def get_account_id(self, token: str) -> str:
        """Return the first account the token can see."""
        accounts = await self.request(token, "GET", "/accounts")
        if not accounts:
            raise CloudflareAPIError("No Cloudflare accounts found")
        return accounts[0]["id"]

    async def create_pages_deployment(
        self,
        token: str,
        account_id: str,
        project_name: str,
        branch: str | None = None,
    ) -> dict[str, Any]:
        """Start a deployment of a Git-connected Pages project."""
        files = {"branch": (None, branch)} if branch else None
        result = await self.request(
            token,
            "POST",
            f"/accounts/{account_id}/pages/projects/{project_name}/deployments",
            files=files,
        )
        return result or {}


class CloudflarePagesDeployer(HostingDeployer):
    """Triggers Cloudflare Pages deployments."""

    def __init__(
        self,
        client: CloudflareClient,
        users: UserProfileService,
        cipher: TokenCipher,
    ):
        self.client = client
        self.users = users
        self.cipher = cipher
        super().__init__()

    @property
    def provider(self) -> HostingProvider:
        return HostingProvider.CLOUDFLARE_PAGES

    async def deploy(
        self,
        user_id: str,
        hosting: Hosting,
        build_dir: Path | None,
        context: DeployContext,
    ) -> HostingDeployResult:
        profile = await self.users.get_user_profile(user_id)
        if profile is None or not profile.cloudflare_token:
            raise HostingDeployError(self.provider.value, "Cloudflare token not configured")

        token = self.cipher.decrypt_or_plaintext(profile.cloudflare_token)
        project_name = hosting.name

        try:
            account_id = await self.client.get_account_id(token)
            self.logger.info(
                "cloudflare_pages.deploying",
                project_name=project_name,
                branch=context.branch,
            )
            result = await self.client.create_pages_deployment(
                token, account_id, project_name, branch=context.branch
            )
        except CloudflareAPIError as e:
            raise HostingDeployError(self.provider.value, e.message) from e
        except httpx.HTTPError as e:
            raise HostingDeployError(
                self.provider.value, f"Cloudflare API request failed: {e}"
            ) from e

        url = result.get("url") or f"https://{project_name}.pages.dev"
        self.logger.info("cloudflare_pages.deployed", project_name=project_name, url=url)
        return HostingDeployResult(url=url, deployment_id=result.get("id"))
