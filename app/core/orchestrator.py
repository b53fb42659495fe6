"""Deployment Orchestrator.

Coordinates one deploy invocation: fetch and build a repository once, then
fan the output out to every selected hosting provider concurrently.

States:
1. validating - repository and hosting selection, before any I/O
2. fetching - download and extract the repository snapshot
3. building - detect the project type and run its build
4. deploying - every selected provider, concurrently
5. aggregating - any provider success means the deploy succeeded

Failures up to and including the build are fatal to the whole deploy and no
provider is attempted. Provider failures are isolated to their own entry.
The working directory is removed on every exit path.
"""

import asyncio
import secrets
import time
from enum import Enum
from pathlib import Path

import structlog

from app.core.exceptions import ConfigurationError, DeployerError, HostingDeployError
from app.core.users import UserProfileService
from app.core.workspace import Workspace
from app.hosting.base import DeployerRegistry
from app.models.deployment import (
    DeployContext,
    Deployment,
    DeploymentStatus,
    DeploymentStep,
    DeployRequest,
    Hosting,
    ProviderResult,
    ProviderStatus,
    Repository,
)
from app.pipeline.builder import BuildRunner
from app.pipeline.fetcher import RepositoryFetcher
from app.utils.logging import get_logger


class OrchestratorState(str, Enum):
    """Internal progress of a deploy invocation."""

    VALIDATING = "validating"
    FETCHING = "fetching"
    BUILDING = "building"
    DEPLOYING = "deploying"
    AGGREGATING = "aggregating"
    SUCCESS = "success"
    PARTIAL_ERROR = "partial_error"
    ERROR = "error"


def new_status_id() -> str:
    return f"deploy-{int(time.time() * 1000)}-{secrets.token_hex(4)}"


def _error_message(error: BaseException) -> str:
    if isinstance(error, DeployerError):
        return error.message
    return str(error) or type(error).__name__


class DeploymentOrchestrator:
    """Runs the deployment pipeline for one deployment at a time.

    ``deploy`` never raises for business failures; they come back as a
    ``DeploymentStatus`` with ``step == "error"``.
    """

    def __init__(
        self,
        users: UserProfileService,
        fetcher: RepositoryFetcher,
        builder: BuildRunner,
        deployers: DeployerRegistry,
        work_dir_root: str | Path | None = None,
    ):
        self.users = users
        self.fetcher = fetcher
        self.builder = builder
        self.deployers = deployers
        self.work_dir_root = work_dir_root
        self.logger = get_logger("orchestrator")

    async def deploy(
        self,
        user_id: str,
        deployment: Deployment,
        context: DeployContext,
        request: DeployRequest,
    ) -> DeploymentStatus:
        """Deploy a deployment's repository to the requested hosting bindings.

        Args:
            user_id: Owner whose credentials are used
            deployment: The deployment record to deploy
            context: Project-level settings (e.g. Firebase project id)
            request: Branch and the ids of the hosting bindings to deploy to

        Returns:
            The aggregated status of the invocation
        """
        status_id = new_status_id()
        log = self.logger.bind(status_id=status_id, deployment_id=deployment.id)

        try:
            self._transition(log, OrchestratorState.VALIDATING)
            repository, selected = self._validate(deployment, request)
            github_token = await self._github_token(user_id)

            async with Workspace(
                repository.owner, repository.name, root=self.work_dir_root
            ) as workspace:
                build_dir = await self._fetch_and_build(
                    log, github_token, repository, request.branch, workspace.path
                )

                self._transition(log, OrchestratorState.DEPLOYING, providers=len(selected))
                results = await self._fan_out(
                    log,
                    user_id,
                    selected,
                    build_dir,
                    context.model_copy(update={"branch": request.branch}),
                )

        except DeployerError as e:
            self._transition(log, OrchestratorState.ERROR, error=e.message)
            return self._failed(status_id, e.message)
        except OSError as e:
            log.error("orchestrator.io_failed", exc_info=e)
            self._transition(log, OrchestratorState.ERROR, error=str(e))
            return self._failed(status_id, _error_message(e))

        return self._aggregate(log, status_id, results)

    def _validate(
        self, deployment: Deployment, request: DeployRequest
    ) -> tuple[Repository, list[Hosting]]:
        if deployment.repository is None:
            raise ConfigurationError("Deployment does not have a repository configured")

        selected = deployment.select_hosting(request.hosting_provider_ids)
        if not selected:
            raise ConfigurationError("No valid hosting providers selected")

        return deployment.repository, selected

    async def _github_token(self, user_id: str) -> str:
        profile = await self.users.get_user_profile(user_id)
        if profile is None or not profile.github_token:
            raise ConfigurationError("GitHub token not configured")
        return profile.github_token

    async def _fetch_and_build(
        self,
        log: structlog.stdlib.BoundLogger,
        token: str,
        repository: Repository,
        branch: str,
        workspace: Path,
    ) -> Path:
        self._transition(log, OrchestratorState.FETCHING, branch=branch)
        source_dir = await self.fetcher.fetch(
            token, repository.owner, repository.name, branch, workspace
        )

        self._transition(log, OrchestratorState.BUILDING)
        return await self.builder.build(source_dir)

    async def _deploy_one(
        self,
        user_id: str,
        hosting: Hosting,
        build_dir: Path,
        context: DeployContext,
    ) -> ProviderResult:
        deployer = self.deployers.get(hosting.provider)
        if deployer is None:
            raise HostingDeployError(
                hosting.provider.value,
                f"Unsupported hosting provider: {hosting.provider.value}",
            )

        result = await deployer.deploy(user_id, hosting, build_dir, context)
        return ProviderResult(
            provider_id=hosting.id,
            provider=hosting.provider,
            status=ProviderStatus.SUCCESS,
            url=result.url,
        )

    async def _fan_out(
        self,
        log: structlog.stdlib.BoundLogger,
        user_id: str,
        selected: list[Hosting],
        build_dir: Path,
        context: DeployContext,
    ) -> list[ProviderResult]:
        # Siblings are never cancelled when one fails
        outcomes = await asyncio.gather(
            *(self._deploy_one(user_id, h, build_dir, context) for h in selected),
            return_exceptions=True,
        )

        results: list[ProviderResult] = []
        for hosting, outcome in zip(selected, outcomes):
            if isinstance(outcome, ProviderResult):
                log.info(
                    "orchestrator.provider.succeeded",
                    provider_id=hosting.id,
                    provider=hosting.provider.value,
                    url=outcome.url,
                )
                results.append(outcome)
                continue

            if not isinstance(outcome, Exception):
                raise outcome

            if isinstance(outcome, DeployerError):
                log.warning(
                    "orchestrator.provider.failed",
                    provider_id=hosting.id,
                    provider=hosting.provider.value,
                    error=outcome.message,
                )
            else:
                log.error(
                    "orchestrator.provider.crashed",
                    provider_id=hosting.id,
                    provider=hosting.provider.value,
                    exc_info=outcome,
                )
            results.append(
                ProviderResult(
                    provider_id=hosting.id,
                    provider=hosting.provider,
                    status=ProviderStatus.ERROR,
                    error=_error_message(outcome),
                )
            )

        return results

    def _failed(self, status_id: str, error: str) -> DeploymentStatus:
        return DeploymentStatus(
            id=status_id,
            step=DeploymentStep.ERROR,
            progress=0,
            message="Deployment failed",
            error=error,
            deployments=[],
        )

    def _aggregate(
        self,
        log: structlog.stdlib.BoundLogger,
        status_id: str,
        results: list[ProviderResult],
    ) -> DeploymentStatus:
        self._transition(log, OrchestratorState.AGGREGATING)

        succeeded = sum(1 for r in results if r.status == ProviderStatus.SUCCESS)

        if succeeded == len(results):
            state = OrchestratorState.SUCCESS
            message = "Deployment completed successfully"
        elif succeeded:
            state = OrchestratorState.PARTIAL_ERROR
            message = "Deployment completed with some errors"
        else:
            state = OrchestratorState.ERROR
            message = "Deployment failed"

        self._transition(log, state, succeeded=succeeded, total=len(results))

        return DeploymentStatus(
            id=status_id,
            step=DeploymentStep.ERROR if state == OrchestratorState.ERROR else DeploymentStep.SUCCESS,
            progress=100,
            message=message,
            deployments=results,
        )

    def _transition(
        self,
        log: structlog.stdlib.BoundLogger,
        state: OrchestratorState,
        **fields: object,
    ) -> None:
        log.info(f"orchestrator.{state.value}", **fields)
