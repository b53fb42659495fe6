"""Deployment record endpoints for a project."""

from fastapi import APIRouter, status

from app.api.deps import DeploymentServiceDep, ProjectDep
from app.models.deployment import Deployment, DeploymentCreate, Hosting, HostingCreate

router = APIRouter()


@router.get(
    "/{project_id}/deployments",
    response_model=list[Deployment],
    response_model_exclude_none=True,
    summary="List a project's deployments",
)
async def list_deployments(project: ProjectDep) -> list[Deployment]:
    return project.deployments


@router.post(
    "/{project_id}/deployments",
    response_model=Deployment,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    summary="Create a deployment",
)
async def create_deployment(
    data: DeploymentCreate,
    project: ProjectDep,
    deployments: DeploymentServiceDep,
) -> Deployment:
    """Create a deployment, optionally linked to a repository."""
    return await deployments.create_deployment(project, data)


@router.get(
    "/{project_id}/deployments/{deployment_id}",
    response_model=Deployment,
    response_model_exclude_none=True,
    summary="Get a deployment",
)
async def get_deployment(
    deployment_id: str,
    project: ProjectDep,
    deployments: DeploymentServiceDep,
) -> Deployment:
    return deployments.get_deployment(project, deployment_id)


@router.delete(
    "/{project_id}/deployments/{deployment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a deployment",
)
async def delete_deployment(
    deployment_id: str,
    project: ProjectDep,
    deployments: DeploymentServiceDep,
) -> None:
    await deployments.delete_deployment(project, deployment_id)


@router.post(
    "/{project_id}/deployments/{deployment_id}/hosting",
    response_model=Hosting,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    summary="Attach a hosting binding",
)
async def add_hosting(
    deployment_id: str,
    data: HostingCreate,
    project: ProjectDep,
    deployments: DeploymentServiceDep,
) -> Hosting:
    """Attach a Firebase Hosting site or Cloudflare Pages project to a deployment."""
    return await deployments.add_hosting(project, deployment_id, data)


@router.delete(
    "/{project_id}/deployments/{deployment_id}/hosting/{hosting_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Detach a hosting binding",
)
async def remove_hosting(
    deployment_id: str,
    hosting_id: str,
    project: ProjectDep,
    deployments: DeploymentServiceDep,
) -> None:
    await deployments.remove_hosting(project, deployment_id, hosting_id)
