"""Hosting provider deployers."""

from app.hosting.base import DeployerRegistry, HostingDeployer, HostingDeployResult
from app.hosting.cloudflare import CloudflareClient, CloudflarePagesDeployer
from app.hosting.firebase import FirebaseHostingDeployer

__all__ = [
    "DeployerRegistry",
    "HostingDeployer",
    "HostingDeployResult",
    "CloudflareClient",
    "CloudflarePagesDeployer",
    "FirebaseHostingDeployer",
]
