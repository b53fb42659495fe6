"""Project-related data models."""

from datetime import datetime
from typing import Any

from pydantic import Field

from app.models.base import CamelModel
from app.models.deployment import DeployContext, Deployment


class Project(CamelModel):
    """A user's project, as kept in the data store."""

    id: str
    name: str
    description: str | None = None
    user_id: str
    firebase_project_id: str | None = None
    deployments: list[Deployment] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    def find_deployment(self, deployment_id: str) -> Deployment | None:
        """Get a deployment by id."""
        for deployment in self.deployments:
            if deployment.id == deployment_id:
                return deployment
        return None

    def deploy_context(self) -> DeployContext:
        return DeployContext(firebase_project_id=self.firebase_project_id or None)
