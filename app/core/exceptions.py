"""Custom exceptions for the deployer."""

from typing import Any


class DeployerError(Exception):
    """Base exception for the deployer."""

    status_code: int = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationError(DeployerError):
    """Validation error."""

    status_code = 400


class ConfigurationError(DeployerError):
    """A required repository, binding or credential is missing."""

    status_code = 400


class AuthenticationError(DeployerError):
    """Caller or upstream credentials were rejected."""

    def __init__(self, message: str = "Unauthorized", status_code: int = 401):
        super().__init__(message, {"status_code": status_code})
        self.status_code = status_code


class PermissionDeniedError(DeployerError):
    """Caller does not own the resource."""

    status_code = 403

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message)


class ProjectNotFoundError(DeployerError):
    """Project not found."""

    status_code = 404

    def __init__(self, project_id: str):
        super().__init__(
            f"Project not found: {project_id}",
            {"project_id": project_id},
        )


class DeploymentNotFoundError(DeployerError):
    """Deployment not found on a project."""

    status_code = 404

    def __init__(self, deployment_id: str):
        super().__init__(
            f"Deployment not found: {deployment_id}",
            {"deployment_id": deployment_id},
        )


class HostingNotFoundError(DeployerError):
    """Hosting binding not found on a deployment."""

    status_code = 404

    def __init__(self, hosting_id: str):
        super().__init__(
            f"Hosting not found: {hosting_id}",
            {"hosting_id": hosting_id},
        )


class DocumentNotFoundError(DeployerError):
    """Data store document does not exist."""

    status_code = 404

    def __init__(self, collection: str, doc_id: str):
        super().__init__(
            f"Document not found: {collection}/{doc_id}",
            {"collection": collection, "doc_id": doc_id},
        )


class DecryptionError(DeployerError):
    """A stored token could not be decrypted."""

    pass


class FetchError(DeployerError):
    """Repository snapshot could not be obtained."""

    status_code = 502


class DownloadError(FetchError):
    """Archive download failed."""

    pass


class ExtractionError(FetchError):
    """Archive extraction failed."""

    pass


class BuildError(DeployerError):
    """Build command failed."""

    def __init__(self, message: str, build_logs: str | None = None):
        details = {}
        if build_logs:
            details["build_logs"] = build_logs
        super().__init__(message, details)


class CloudflareAPIError(DeployerError):
    """Cloudflare API returned an error envelope or status."""

    status_code = 502

    def __init__(self, message: str, http_status: int | None = None):
        super().__init__(message, {"http_status": http_status})
        self.http_status = http_status


class HostingDeployError(DeployerError):
    """A hosting provider rejected or failed a deploy."""

    status_code = 502

    def __init__(self, provider: str, message: str):
        super().__init__(message, {"provider": provider})
        self.provider = provider
