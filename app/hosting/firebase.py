"""Firebase Hosting deployer.

Ships a build directory through the Firebase Hosting REST API:

1. Create a version for the site
2. Declare every file by the sha256 of its gzipped content
3. Upload the content the API does not already have
4. Finalize the version
5. Release it
"""

import asyncio
import gzip
import hashlib
from pathlib import Path
from typing import Any

import httpx

from app.core.exceptions import AuthenticationError, DeployerError, HostingDeployError
from app.core.google_tokens import GoogleTokenProvider
from app.hosting.base import HostingDeployer, HostingDeployResult
from app.models.deployment import DeployContext, Hosting, HostingProvider

VERSION_CONFIG = {
    "headers": [
        {
            "glob": "**",
            "headers": {"Cache-Control": "max-age=3600"},
        }
    ]
}


class SiteFiles:
    """Gzipped contents of a build directory keyed for the Hosting API."""

    def __init__(self, manifest: dict[str, str], blobs: dict[str, bytes]):
        # "/path/in/site" -> sha256 of gzipped content
        self.manifest = manifest
        # sha256 -> gzipped content
        self.blobs = blobs

    @classmethod
    def collect(cls, build_dir: Path) -> "SiteFiles":
        manifest: dict[str, str] = {}
        blobs: dict[str, bytes] = {}
        for path in sorted(build_dir.rglob("*")):
            if not path.is_file():
                continue
            # mtime=0 keeps the gzip bytes, and so the hash, reproducible
            gzipped = gzip.compress(path.read_bytes(), mtime=0)
            digest = hashlib.sha256(gzipped).hexdigest()
            manifest["/" + path.relative_to(build_dir).as_posix()] = digest
            blobs[digest] = gzipped
        return cls(manifest, blobs)


class FirebaseHostingDeployer(HostingDeployer):
    """Deploys build output to a Firebase Hosting site."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        tokens: GoogleTokenProvider,
        api_base_url: str = "https://firebasehosting.googleapis.com/v1beta1",
    ):
        self.http = http
        self.tokens = tokens
        self.api_base_url = api_base_url.rstrip("/")
        super().__init__()

    @property
    def provider(self) -> HostingProvider:
        return HostingProvider.FIREBASE_HOSTING

    async def deploy(
        self,
        user_id: str,
        hosting: Hosting,
        build_dir: Path | None,
        context: DeployContext,
    ) -> HostingDeployResult:
        if not context.firebase_project_id:
            raise HostingDeployError(self.provider.value, "Firebase project ID not configured")
        if build_dir is None:
            raise HostingDeployError(self.provider.value, "Build directory not available")

        site_id = hosting.name
        files = await asyncio.to_thread(SiteFiles.collect, build_dir)

        self.logger.info(
            "firebase_hosting.deploying",
            firebase_project_id=context.firebase_project_id,
            site_id=site_id,
            file_count=len(files.manifest),
        )

        try:
            release_id = await self.tokens.with_token_refresh(
                user_id, lambda token: self._deploy_site(token, site_id, files)
            )
        except HostingDeployError:
            raise
        except DeployerError as e:
            # Refresh failures and missing Google credentials
            raise HostingDeployError(self.provider.value, e.message) from e
        except httpx.HTTPError as e:
            raise HostingDeployError(
                self.provider.value, f"Firebase Hosting request failed: {e}"
            ) from e

        url = f"https://{site_id}.web.app"
        self.logger.info("firebase_hosting.released", site_id=site_id, url=url)
        return HostingDeployResult(url=url, deployment_id=release_id)

    async def _deploy_site(self, token: str, site_id: str, files: SiteFiles) -> str:
        version = await self._call(
            token,
            "POST",
            f"{self.api_base_url}/sites/{site_id}/versions",
            "create version",
            json={"config": VERSION_CONFIG},
        )
        version_name = version.get("name")
        if not version_name:
            raise HostingDeployError(
                self.provider.value, "Version name not returned from version creation"
            )

        populated = await self._call(
            token,
            "POST",
            f"{self.api_base_url}/{version_name}:populateFiles",
            "populate files",
            json={"files": files.manifest},
        )
        upload_url = populated.get("uploadUrl")
        if not upload_url:
            raise HostingDeployError(
                self.provider.value, "Upload URL not returned from populateFiles"
            )

        required = populated.get("uploadRequiredHashes") or []
        await asyncio.gather(
            *(
                self._upload(token, upload_url, digest, files.blobs[digest])
                for digest in required
                if digest in files.blobs
            )
        )

        await self._call(
            token,
            "PATCH",
            f"{self.api_base_url}/{version_name}",
            "finalize version",
            params={"update_mask": "status"},
            json={"status": "FINALIZED"},
        )

        release = await self._call(
            token,
            "POST",
            f"{self.api_base_url}/sites/{site_id}/releases",
            "create release",
            params={"versionName": version_name},
        )
        return str(release.get("name", "")).rsplit("/", 1)[-1]

    async def _upload(self, token: str, upload_url: str, digest: str, content: bytes) -> None:
        response = await self.http.post(
            f"{upload_url}/{digest}",
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/octet-stream",
            },
            content=content,
        )
        self._raise_for_status(response, f"upload file {digest}")

    async def _call(
        self,
        token: str,
        method: str,
        url: str,
        action: str,
        **kwargs: Any,
    ) -> dict[str, Any]:
        response = await self.http.request(
            method,
            url,
            headers={"Authorization": f"Bearer {token}"},
            **kwargs,
        )
        self._raise_for_status(response, action)
        if not response.content:
            return {}
        return response.json()

    def _raise_for_status(self, response: httpx.Response, action: str) -> None:
        if not response.is_error:
            return

        message = None
        try:
            message = response.json().get("error", {}).get("message")
        except (ValueError, AttributeError):
            pass
        message = message or f"Failed to {action}: {response.reason_phrase}"

        if response.status_code in (401, 403):
            raise AuthenticationError(message, response.status_code)
        raise HostingDeployError(self.provider.value, message)
