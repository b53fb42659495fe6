"""Explicitly constructed service handles shared by the API layer."""

from dataclasses import dataclass

import httpx

from app.config import Settings
from app.core.auth import FirebaseTokenVerifier, TokenVerifier
from app.core.crypto import TokenCipher
from app.core.deployments import DeploymentService
from app.core.google_tokens import GoogleTokenProvider
from app.core.orchestrator import DeploymentOrchestrator
from app.core.store import DataStore, create_data_store
from app.core.users import UserProfileService
from app.hosting.base import DeployerRegistry
from app.hosting.cloudflare import CloudflareClient, CloudflarePagesDeployer
from app.hosting.firebase import FirebaseHostingDeployer
from app.pipeline.builder import BuildRunner
from app.pipeline.fetcher import RepositoryFetcher


@dataclass
class Services:
    """Everything a request handler needs, built once at startup."""

    settings: Settings
    store: DataStore
    users: UserProfileService
    verifier: TokenVerifier
    deployments: DeploymentService
    orchestrator: DeploymentOrchestrator


def create_services(
    settings: Settings,
    http: httpx.AsyncClient,
    store: DataStore | None = None,
    verifier: TokenVerifier | None = None,
) -> Services:
    """Wire the deployer's collaborators together."""
    store = store or create_data_store(settings.data_store_backend, settings.gcp_project_id)
    users = UserProfileService(store)
    cipher = TokenCipher(settings.encryption_key)

    tokens = GoogleTokenProvider(
        users,
        http,
        client_id=settings.google_client_id,
        client_secret=settings.google_client_secret,
        token_url=settings.google_oauth_token_url,
    )
    registry = DeployerRegistry(
        [
            FirebaseHostingDeployer(http, tokens, settings.firebase_hosting_api_base_url),
            CloudflarePagesDeployer(
                CloudflareClient(http, settings.cloudflare_api_base_url),
                users,
                cipher,
            ),
        ]
    )

    orchestrator = DeploymentOrchestrator(
        users=users,
        fetcher=RepositoryFetcher(http, settings.github_api_base_url),
        builder=BuildRunner(timeout=settings.build_timeout_seconds),
        deployers=registry,
        work_dir_root=settings.work_dir_root,
    )

    return Services(
        settings=settings,
        store=store,
        users=users,
        verifier=verifier or FirebaseTokenVerifier(project_id=settings.gcp_project_id),
        deployments=DeploymentService(store),
        orchestrator=orchestrator,
    )
