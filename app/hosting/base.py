"""Base class and registry for hosting deployers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from app.models.deployment import DeployContext, Hosting, HostingProvider
from app.utils.logging import get_logger


@dataclass
class HostingDeployResult:
    """What a provider reports after a successful deploy."""

    url: str
    deployment_id: str | None = None


class HostingDeployer(ABC):
    """Base class for hosting providers.

    All deployers should inherit from this class and implement:
    - provider: Which hosting provider this deployer handles
    - deploy(): Ship a build to one hosting binding

    Provider-side failures must be raised as ``HostingDeployError``.
    """

    def __init__(self):
        self.logger = get_logger(f"hosting.{self.provider.value}")

    @property
    @abstractmethod
    def provider(self) -> HostingProvider:
        """Hosting provider handled by this deployer."""
        pass

    @abstractmethod
    async def deploy(
        self,
        user_id: str,
        hosting: Hosting,
        build_dir: Path | None,
        context: DeployContext,
    ) -> HostingDeployResult:
        """Deploy to one hosting binding.

        Args:
            user_id: Owner whose provider credentials are used
            hosting: The binding; its ``name`` identifies the provider target
            build_dir: Static output to upload, if the deploy produced one
            context: Project-level settings and the requested branch

        Returns:
            The live URL of the deploy
        """
        pass


class DeployerRegistry:
    """Maps hosting providers to their deployers."""

    def __init__(self, deployers: list[HostingDeployer] | None = None):
        self._deployers: dict[HostingProvider, HostingDeployer] = {}
        for deployer in deployers or []:
            self.register(deployer)

    def register(self, deployer: HostingDeployer) -> None:
        """Register a deployer for its provider."""
        if deployer.provider in self._deployers:
            deployer.logger.warning("registry.overwriting", provider=deployer.provider.value)
        self._deployers[deployer.provider] = deployer

    def get(self, provider: HostingProvider) -> HostingDeployer | None:
        """Get the deployer for a provider."""
        return self._deployers.get(provider)
