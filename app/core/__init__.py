"""Core functionality for the deployer."""

from app.core.exceptions import (
    AuthenticationError,
    BuildError,
    ConfigurationError,
    DeployerError,
    DeploymentNotFoundError,
    DownloadError,
    ExtractionError,
    FetchError,
    HostingDeployError,
    PermissionDeniedError,
    ProjectNotFoundError,
    ValidationError,
)
from app.core.store import DataStore, InMemoryDataStore
from app.core.workspace import Workspace

__all__ = [
    "AuthenticationError",
    "BuildError",
    "ConfigurationError",
    "DeployerError",
    "DeploymentNotFoundError",
    "DownloadError",
    "ExtractionError",
    "FetchError",
    "HostingDeployError",
    "PermissionDeniedError",
    "ProjectNotFoundError",
    "ValidationError",
    "DataStore",
    "InMemoryDataStore",
    "Workspace",
]
