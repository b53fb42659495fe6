"""Deploy invocation endpoint."""

from fastapi import APIRouter

from app.api.deps import DeploymentServiceDep, OrchestratorDep, ProjectDep, UserIdDep
from app.core.exceptions import DeployerError
from app.models.deployment import DeploymentStatus, DeployRequest
from app.utils.logging import get_logger

router = APIRouter()

logger = get_logger(__name__)


@router.post(
    "/{project_id}/{deployment_id}/deploy",
    response_model=DeploymentStatus,
    response_model_exclude_none=True,
    summary="Deploy to selected hosting providers",
    description="Fetches and builds the deployment's repository, then deploys it to every "
    "selected hosting binding. Provider failures are reported per provider.",
)
async def deploy(
    deployment_id: str,
    data: DeployRequest,
    project: ProjectDep,
    user_id: UserIdDep,
    deployments: DeploymentServiceDep,
    orchestrator: OrchestratorDep,
) -> DeploymentStatus:
    """Deploy a deployment and return its aggregated status."""
    deployment = deployments.get_deployment(project, deployment_id)

    result = await orchestrator.deploy(
        user_id,
        deployment,
        project.deploy_context(),
        data,
    )

    try:
        await deployments.record_results(project.id, deployment.id, result)
    except DeployerError as e:
        logger.warning(
            "deployments.record_results_failed",
            project_id=project.id,
            deployment_id=deployment.id,
            error=e.message,
        )

    return result
