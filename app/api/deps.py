"""Dependency injection for API endpoints."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from app.core.deployments import DeploymentService
from app.core.exceptions import AuthenticationError
from app.core.orchestrator import DeploymentOrchestrator
from app.core.services import Services
from app.models.project import Project

SESSION_COOKIE_NAME = "auth_session"


async def get_services(request: Request) -> Services:
    """Get the service handles built at startup."""
    return request.app.state.services


async def get_current_user_id(
    request: Request,
    services: Annotated[Services, Depends(get_services)],
) -> str:
    """Resolve the caller from a bearer token or the session cookie, or raise 401."""
    if services.settings.auth_disabled:
        return services.settings.dev_user_id

    header = request.headers.get("Authorization", "")
    if header.startswith("Bearer "):
        token = header[len("Bearer "):]
    else:
        token = request.cookies.get(SESSION_COOKIE_NAME, "")

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )

    try:
        return await services.verifier.verify(token)
    except AuthenticationError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )


async def get_deployment_service(
    services: Annotated[Services, Depends(get_services)],
) -> DeploymentService:
    return services.deployments


async def get_orchestrator(
    services: Annotated[Services, Depends(get_services)],
) -> DeploymentOrchestrator:
    return services.orchestrator


async def get_owned_project(
    project_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    deployments: Annotated[DeploymentService, Depends(get_deployment_service)],
) -> Project:
    """Get a project the caller owns, or raise 404/403."""
    return await deployments.get_owned_project(project_id, user_id)


# Type aliases for cleaner signatures
ServicesDep = Annotated[Services, Depends(get_services)]
UserIdDep = Annotated[str, Depends(get_current_user_id)]
DeploymentServiceDep = Annotated[DeploymentService, Depends(get_deployment_service)]
OrchestratorDep = Annotated[DeploymentOrchestrator, Depends(get_orchestrator)]
ProjectDep = Annotated[Project, Depends(get_owned_project)]
