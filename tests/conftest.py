"""Pytest configuration and fixtures."""

import base64
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from app.config import Settings
from app.core.deployments import DeploymentService
from app.core.exceptions import AuthenticationError
from app.core.orchestrator import DeploymentOrchestrator
from app.core.services import Services
from app.core.store import InMemoryDataStore
from app.core.users import UserProfileService
from app.hosting.base import DeployerRegistry, HostingDeployer, HostingDeployResult
from app.main import app
from app.models.deployment import (
    DeployContext,
    Deployment,
    Hosting,
    HostingProvider,
    Repository,
)
from app.models.project import Project
from app.models.user import UserProfile

TEST_USER_ID = "user-1"
TEST_TOKEN = "valid-token"


class FakeVerifier:
    """Accepts a fixed set of tokens."""

    def __init__(self, tokens: dict[str, str] | None = None):
        self.tokens = tokens if tokens is not None else {TEST_TOKEN: TEST_USER_ID}

    async def verify(self, id_token: str) -> str:
        if id_token not in self.tokens:
            raise AuthenticationError("Unauthorized")
        return self.tokens[id_token]

    def close(self) -> None:
        pass


class FakeFetcher:
    """Writes a small site into the workspace instead of downloading."""

    def __init__(self, error: Exception | None = None):
        self.error = error
        self.calls: list[tuple[str, str, str, str]] = []
        self.workspaces: list[Path] = []

    async def fetch(
        self, token: str, owner: str, repo: str, branch: str, workspace: Path
    ) -> Path:
        self.calls.append((token, owner, repo, branch))
        self.workspaces.append(workspace)
        if self.error:
            raise self.error
        source = workspace / "source"
        source.mkdir()
        (source / "index.html").write_text("<h1>hello</h1>")
        return source


class FakeBuilder:
    """Returns the source tree as the build output."""

    def __init__(self, error: Exception | None = None):
        self.error = error
        self.calls: list[Path] = []

    async def build(self, root: Path) -> Path:
        self.calls.append(root)
        if self.error:
            raise self.error
        return root


class FakeDeployer(HostingDeployer):
    """Records calls and succeeds or fails per binding name."""

    def __init__(
        self,
        provider: HostingProvider,
        failures: dict[str, Exception] | None = None,
    ):
        self._provider = provider
        self.failures = failures or {}
        self.calls: list[tuple[str, Hosting, Path | None, DeployContext]] = []
        super().__init__()

    @property
    def provider(self) -> HostingProvider:
        return self._provider

    async def deploy(
        self,
        user_id: str,
        hosting: Hosting,
        build_dir: Path | None,
        context: DeployContext,
    ) -> HostingDeployResult:
        self.calls.append((user_id, hosting, build_dir, context))
        if hosting.name in self.failures:
            raise self.failures[hosting.name]
        return HostingDeployResult(url=f"https://{hosting.name}.example.test")


@pytest.fixture
def store() -> InMemoryDataStore:
    """Create a fresh in-memory data store."""
    return InMemoryDataStore()


@pytest.fixture
def users(store: InMemoryDataStore) -> UserProfileService:
    return UserProfileService(store)


@pytest.fixture
def encryption_key() -> str:
    return base64.b64encode(b"k" * 32).decode("ascii")


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def builder() -> FakeBuilder:
    return FakeBuilder()


@pytest.fixture
def firebase_deployer() -> FakeDeployer:
    return FakeDeployer(HostingProvider.FIREBASE_HOSTING)


@pytest.fixture
def cloudflare_deployer() -> FakeDeployer:
    return FakeDeployer(HostingProvider.CLOUDFLARE_PAGES)


@pytest.fixture
def orchestrator(
    users: UserProfileService,
    fetcher: FakeFetcher,
    builder: FakeBuilder,
    firebase_deployer: FakeDeployer,
    cloudflare_deployer: FakeDeployer,
    tmp_path: Path,
) -> DeploymentOrchestrator:
    """Create an orchestrator wired to fakes."""
    return DeploymentOrchestrator(
        users=users,
        fetcher=fetcher,
        builder=builder,
        deployers=DeployerRegistry([firebase_deployer, cloudflare_deployer]),
        work_dir_root=tmp_path / "work",
    )


@pytest.fixture
def deployment() -> Deployment:
    """A deployment bound to one Firebase site and one Pages project."""
    return Deployment(
        id="deployment-1",
        name="web",
        repository=Repository(owner="acme", name="site", full_name="acme/site"),
        hosting=[
            Hosting(id="hosting-fb", provider=HostingProvider.FIREBASE_HOSTING, name="acme-site"),
            Hosting(id="hosting-cf", provider=HostingProvider.CLOUDFLARE_PAGES, name="acme-pages"),
        ],
    )


@pytest.fixture
async def seeded_store(
    store: InMemoryDataStore,
    users: UserProfileService,
    deployment: Deployment,
) -> InMemoryDataStore:
    """Store holding a user with a GitHub token and a project they own."""
    await users.save_user_profile(UserProfile(uid=TEST_USER_ID, github_token="gh-token"))
    await DeploymentService(store).save_project(
        Project(
            id="project-1",
            name="Acme",
            user_id=TEST_USER_ID,
            firebase_project_id="acme-firebase",
            deployments=[deployment],
        )
    )
    return store


@pytest.fixture
async def client(
    seeded_store: InMemoryDataStore,
    users: UserProfileService,
    orchestrator: DeploymentOrchestrator,
) -> AsyncClient:
    """Create an async test client with fresh services."""
    app.state.services = Services(
        settings=Settings(auth_disabled=False),
        store=seeded_store,
        users=users,
        verifier=FakeVerifier(),
        deployments=DeploymentService(seeded_store),
        orchestrator=orchestrator,
    )

    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"Authorization": f"Bearer {TEST_TOKEN}"},
    ) as ac:
        yield ac

    del app.state.services

