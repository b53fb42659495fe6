"""Deployment data models."""

from datetime import datetime
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field

from app.models.base import CamelModel


class HostingProvider(str, Enum):
    """Supported hosting providers."""

    FIREBASE_HOSTING = "firebase-hosting"
    CLOUDFLARE_PAGES = "cloudflare-pages"


class DeploymentStep(str, Enum):
    """Overall step reported to the caller."""

    IDLE = "idle"
    DOWNLOADING = "downloading"
    BUILDING = "building"
    DEPLOYING = "deploying"
    SUCCESS = "success"
    ERROR = "error"


class ProviderStatus(str, Enum):
    """Per-provider outcome."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    SUCCESS = "success"
    ERROR = "error"


class Repository(CamelModel):
    """Source repository linked to a deployment."""

    owner: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    full_name: str | None = None
    url: str | None = None


class Hosting(CamelModel):
    """A hosting binding attached to a deployment."""

    id: str = Field(default_factory=lambda: f"hosting-{uuid4().hex[:12]}")
    provider: HostingProvider
    # Firebase site id or Cloudflare Pages project name
    name: str = Field(..., min_length=1)
    url: str | None = None
    status: str | None = None
    linked_at: datetime = Field(default_factory=datetime.utcnow)


class Deployment(CamelModel):
    """A repository bound to one or more hosting targets within a project."""

    id: str = Field(default_factory=lambda: f"deployment-{uuid4().hex[:12]}")
    name: str
    description: str | None = None
    repository: Repository | None = None
    hosting: list[Hosting] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    def select_hosting(self, hosting_ids: list[str]) -> list[Hosting]:
        """Return the bindings whose ids were requested, in binding order."""
        wanted = set(hosting_ids)
        return [h for h in self.hosting if h.id in wanted]


class DeployContext(BaseModel):
    """Project-level settings a deploy needs beyond the deployment itself."""

    firebase_project_id: str | None = None
    branch: str | None = None


class ProviderResult(CamelModel):
    """Outcome of one hosting provider within a deploy."""

    provider_id: str
    provider: HostingProvider
    status: ProviderStatus
    url: str | None = None
    error: str | None = None


class DeploymentStatus(CamelModel):
    """Result of one deploy invocation. Never persisted."""

    id: str
    step: DeploymentStep
    progress: int = Field(default=0, ge=0, le=100)
    message: str | None = None
    error: str | None = None
    deployments: list[ProviderResult] = Field(default_factory=list)


class DeployRequest(CamelModel):
    """Body of a deploy invocation."""

    branch: str = Field(..., min_length=1)
    hosting_provider_ids: list[str] = Field(..., min_length=1)


class DeploymentCreate(CamelModel):
    """Request model for creating a deployment."""

    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = None
    repository: Repository | None = None


class HostingCreate(CamelModel):
    """Request model for attaching a hosting binding."""

    provider: HostingProvider
    name: str = Field(..., min_length=1)
    url: str | None = None
