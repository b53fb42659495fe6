"""Per-deploy working directory."""

import asyncio
import re
import shutil
import tempfile
import time
from pathlib import Path
from types import TracebackType

from app.core.exceptions import ConfigurationError
from app.utils.logging import get_logger

logger = get_logger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class Workspace:
    """A temporary directory owned by exactly one deploy attempt.

    Named ``deploy-{owner}-{repo}-{millis}-{random}`` and created atomically,
    so concurrent deploys of the same repository never share a directory.
    The directory is removed when the context exits, whatever the outcome;
    removal failures are logged and never raised.
    """

    def __init__(self, owner: str, repo: str, root: str | Path | None = None):
        self.owner = owner
        self.repo = repo
        self.root = Path(root) if root else None
        self._path: Path | None = None

    @property
    def path(self) -> Path:
        if self._path is None:
            raise RuntimeError("Workspace has not been created")
        return self._path

    def create(self) -> Path:
        owner = _UNSAFE_CHARS.sub("_", self.owner)
        repo = _UNSAFE_CHARS.sub("_", self.repo)
        prefix = f"deploy-{owner}-{repo}-{int(time.time() * 1000)}-"
        try:
            if self.root is not None:
                self.root.mkdir(parents=True, exist_ok=True)
            self._path = Path(tempfile.mkdtemp(prefix=prefix, dir=self.root))
        except OSError as e:
            raise ConfigurationError(
                f"Could not create working directory: {e}",
                {"root": str(self.root) if self.root else None},
            ) from e
        logger.debug("workspace.created", path=str(self._path))
        return self._path

    def cleanup(self) -> None:
        if self._path is None:
            return
        try:
            shutil.rmtree(self._path)
            logger.debug("workspace.removed", path=str(self._path))
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(
                "workspace.cleanup_failed",
                path=str(self._path),
                error=str(e),
            )

    async def __aenter__(self) -> "Workspace":
        await asyncio.to_thread(self.create)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await asyncio.to_thread(self.cleanup)
