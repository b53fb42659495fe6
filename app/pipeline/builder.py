"""Build Detector/Runner.

Classifies an extracted source tree and, when it needs one, runs its build
to produce a directory of static assets.
"""

import asyncio
import json
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from app.core.exceptions import BuildError
from app.utils.logging import get_logger

logger = get_logger(__name__)

# Checked in order when resolving where a build wrote its output
OUTPUT_DIRS = ("dist", "build", "out", "public", ".next")

BUILD_SCRIPTS = ("build", "build:prod")

# Characters of build output kept on failure
LOG_TAIL_CHARS = 4000


class ProjectKind(str, Enum):
    """How a source tree becomes deployable assets."""

    STATIC = "static"
    SPA = "spa"


@dataclass
class ProjectType:
    """Detected project type."""

    kind: ProjectKind
    build_dir: str | None = None
    build_script: str | None = None


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return None


def _find_output_dir(root: Path) -> str | None:
    for name in OUTPUT_DIRS:
        if (root / name).is_dir():
            return name
    return None


def _resolve_inside(root: Path, relative: str) -> Path:
    """Resolve ``relative`` under ``root``; falls back to ``root`` if it escapes."""
    candidate = (root / relative).resolve()
    if candidate.is_relative_to(root.resolve()) and candidate.is_dir():
        return candidate
    logger.warning("builder.output_dir_ignored", build_dir=relative)
    return root


def _firebase_public_dir(config: Any) -> str | None:
    if not isinstance(config, dict):
        return None
    hosting = config.get("hosting")
    targets = hosting if isinstance(hosting, list) else [hosting]
    for target in targets:
        if isinstance(target, dict) and isinstance(target.get("public"), str):
            return target["public"]
    return None


def detect_project_type(root: Path) -> ProjectType:
    """Classify a source tree from its manifests.

    Unreadable or unrecognised manifests fall through to a static site
    served from the root.
    """
    package = _read_json(root / "package.json")
    if isinstance(package, dict):
        scripts = package.get("scripts") or {}
        for script in BUILD_SCRIPTS:
            if isinstance(scripts, dict) and scripts.get(script):
                return ProjectType(ProjectKind.SPA, build_script=script)

        # No build script, but assets were committed already built
        prebuilt = _find_output_dir(root)
        if prebuilt:
            return ProjectType(ProjectKind.STATIC, build_dir=prebuilt)

    public_dir = _firebase_public_dir(_read_json(root / "firebase.json"))
    if public_dir:
        return ProjectType(ProjectKind.STATIC, build_dir=public_dir)

    return ProjectType(ProjectKind.STATIC)


class BuildRunner:
    """Runs the build for a detected project type."""

    def __init__(self, timeout: float | None = None):
        self.timeout = timeout

    async def build(self, root: Path, project_type: ProjectType | None = None) -> Path:
        """Build the source tree at ``root`` and return its output directory.

        Raises:
            BuildError: If installing dependencies or the build itself fails
        """
        project_type = project_type or detect_project_type(root)
        logger.info(
            "builder.detected",
            kind=project_type.kind.value,
            build_dir=project_type.build_dir,
            build_script=project_type.build_script,
        )

        if project_type.kind == ProjectKind.STATIC:
            if project_type.build_dir:
                return _resolve_inside(root, project_type.build_dir)
            return root

        use_yarn = (root / "yarn.lock").exists()
        runner = "yarn" if use_yarn else "npm"

        await self._run(
            [runner, "install"], root, "Failed to install dependencies"
        )
        await self._run(
            [runner, "run", project_type.build_script or "build"], root, "Build failed"
        )

        output_dir = _find_output_dir(root)
        if output_dir is None:
            logger.warning("builder.no_output_dir", root=str(root))
            return root
        return root / output_dir

    async def _run(self, cmd: list[str], cwd: Path, failure_message: str) -> str:
        """Run a command in ``cwd`` and return its combined output."""
        logger.info("builder.command.started", cmd=" ".join(cmd), cwd=str(cwd))

        env = os.environ.copy()
        env["CI"] = "true"

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                cwd=str(cwd),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
                env=env,
            )
        except FileNotFoundError as e:
            raise BuildError(f"{failure_message}: {cmd[0]} is not installed") from e
        except OSError as e:
            raise BuildError(f"{failure_message}: could not start {cmd[0]}: {e}") from e

        try:
            stdout, _ = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise BuildError(
                f"{failure_message}: timed out after {self.timeout} seconds"
            )

        output = stdout.decode("utf-8", errors="replace") if stdout else ""

        if process.returncode != 0:
            logger.error(
                "builder.command.failed",
                cmd=" ".join(cmd),
                returncode=process.returncode,
                output_tail=output[-500:],
            )
            raise BuildError(
                f"{failure_message}: exit code {process.returncode}",
                build_logs=output[-LOG_TAIL_CHARS:],
            )

        logger.info("builder.command.completed", cmd=" ".join(cmd))
        return output
