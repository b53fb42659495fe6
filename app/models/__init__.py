"""Data models for the deployer."""

from app.models.base import CamelModel
from app.models.deployment import (
    DeployContext,
    Deployment,
    DeploymentCreate,
    DeploymentStatus,
    DeploymentStep,
    DeployRequest,
    Hosting,
    HostingCreate,
    HostingProvider,
    ProviderResult,
    ProviderStatus,
    Repository,
)
from app.models.project import Project
from app.models.user import UserProfile

__all__ = [
    "CamelModel",
    # Deployment models
    "Deployment",
    "DeploymentCreate",
    "DeploymentStatus",
    "DeploymentStep",
    "DeployContext",
    "DeployRequest",
    "Hosting",
    "HostingCreate",
    "HostingProvider",
    "ProviderResult",
    "ProviderStatus",
    "Repository",
    # Project models
    "Project",
    # User models
    "UserProfile",
]
