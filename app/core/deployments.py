"""Deployment records stored on projects."""

from datetime import datetime

from app.core.exceptions import (
    DeploymentNotFoundError,
    HostingNotFoundError,
    PermissionDeniedError,
    ProjectNotFoundError,
)
from app.core.store import DataStore
from app.models.deployment import (
    Deployment,
    DeploymentCreate,
    DeploymentStatus,
    Hosting,
    HostingCreate,
    ProviderStatus,
)
from app.models.project import Project
from app.utils.logging import get_logger

PROJECTS_COLLECTION = "projects"

logger = get_logger(__name__)


class DeploymentService:
    """Reads and mutates the deployments nested in project documents.

    Writes are whole-list replacements with last writer wins; concurrent
    edits of the same project are not serialized.
    """

    def __init__(self, store: DataStore):
        self.store = store

    async def get_project(self, project_id: str) -> Project | None:
        """Get a project by ID."""
        data = await self.store.get(PROJECTS_COLLECTION, project_id)
        if data is None:
            return None
        data.setdefault("id", project_id)
        return Project.model_validate(data)

    async def get_owned_project(self, project_id: str, user_id: str) -> Project:
        """Get a project the user owns.

        Raises:
            ProjectNotFoundError: If the project does not exist
            PermissionDeniedError: If another user owns it
        """
        project = await self.get_project(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        if project.user_id != user_id:
            raise PermissionDeniedError()
        return project

    async def save_project(self, project: Project) -> Project:
        """Create or replace a project document."""
        project.updated_at = datetime.utcnow()
        await self.store.set(PROJECTS_COLLECTION, project.id, project.to_document())
        return project

    def get_deployment(self, project: Project, deployment_id: str) -> Deployment:
        deployment = project.find_deployment(deployment_id)
        if deployment is None:
            raise DeploymentNotFoundError(deployment_id)
        return deployment

    async def create_deployment(self, project: Project, data: DeploymentCreate) -> Deployment:
        """Add a deployment to a project."""
        deployment = Deployment(
            name=data.name,
            description=data.description,
            repository=data.repository,
        )
        project.deployments.append(deployment)
        await self._save_deployments(project)
        logger.info(
            "deployments.created",
            project_id=project.id,
            deployment_id=deployment.id,
        )
        return deployment

    async def delete_deployment(self, project: Project, deployment_id: str) -> None:
        """Remove a deployment from a project."""
        deployment = self.get_deployment(project, deployment_id)
        project.deployments.remove(deployment)
        await self._save_deployments(project)
        logger.info("deployments.deleted", project_id=project.id, deployment_id=deployment_id)

    async def add_hosting(
        self, project: Project, deployment_id: str, data: HostingCreate
    ) -> Hosting:
        """Attach a hosting binding to a deployment."""
        deployment = self.get_deployment(project, deployment_id)
        hosting = Hosting(provider=data.provider, name=data.name, url=data.url)
        deployment.hosting.append(hosting)
        deployment.updated_at = datetime.utcnow()
        await self._save_deployments(project)
        return hosting

    async def remove_hosting(
        self, project: Project, deployment_id: str, hosting_id: str
    ) -> None:
        """Detach a hosting binding from a deployment."""
        deployment = self.get_deployment(project, deployment_id)
        remaining = [h for h in deployment.hosting if h.id != hosting_id]
        if len(remaining) == len(deployment.hosting):
            raise HostingNotFoundError(hosting_id)
        deployment.hosting = remaining
        deployment.updated_at = datetime.utcnow()
        await self._save_deployments(project)

    async def record_results(
        self, project_id: str, deployment_id: str, status: DeploymentStatus
    ) -> None:
        """Copy per-provider outcomes onto the stored hosting bindings."""
        if not status.deployments:
            return

        project = await self.get_project(project_id)
        deployment = project.find_deployment(deployment_id) if project else None
        if deployment is None:
            logger.warning(
                "deployments.record_results_skipped",
                project_id=project_id,
                deployment_id=deployment_id,
            )
            return

        outcomes = {r.provider_id: r for r in status.deployments}
        for hosting in deployment.hosting:
            outcome = outcomes.get(hosting.id)
            if outcome is None:
                continue
            hosting.status = outcome.status.value
            if outcome.status == ProviderStatus.SUCCESS and outcome.url:
                hosting.url = outcome.url
        deployment.updated_at = datetime.utcnow()

        await self._save_deployments(project)

    async def _save_deployments(self, project: Project) -> None:
        project.updated_at = datetime.utcnow()
        document = project.to_document()
        await self.store.update(
            PROJECTS_COLLECTION,
            project.id,
            {"deployments": document["deployments"], "updatedAt": document["updatedAt"]},
        )
