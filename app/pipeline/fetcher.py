"""Repository Fetcher.

Downloads a single tarball snapshot of a GitHub ref and unpacks it into a
working directory. No history, no retries.
"""

import asyncio
import tarfile
import zlib
from pathlib import Path, PurePosixPath
from urllib.parse import quote

import httpx

from app.core.exceptions import DownloadError, ExtractionError, ValidationError
from app.utils.logging import get_logger

logger = get_logger(__name__)

ARCHIVE_NAME = "source.tar.gz"
SOURCE_DIR_NAME = "source"


def _strip_root(name: str) -> PurePosixPath | None:
    """Drop the leading ``{owner}-{repo}-{sha}/`` component GitHub adds."""
    parts = PurePosixPath(name).parts
    if len(parts) <= 1:
        return None
    return PurePosixPath(*parts[1:])


def extract_tarball(archive_path: Path, destination: Path) -> Path:
    """Extract a GitHub tarball into ``destination`` without its root directory.

    Members that would land outside ``destination`` are rejected.
    """
    destination.mkdir(parents=True, exist_ok=True)
    try:
        with tarfile.open(archive_path, "r:*") as archive:
            members = []
            for member in archive.getmembers():
                relative = _strip_root(member.name)
                if relative is None:
                    continue
                member.name = str(relative)
                if member.islnk():
                    # Hard link targets carry the same root prefix as names
                    target = _strip_root(member.linkname)
                    if target is None:
                        continue
                    member.linkname = str(target)
                members.append(member)
            archive.extractall(destination, members=members, filter="data")
    except (tarfile.TarError, EOFError, zlib.error, OSError) as e:
        raise ExtractionError(
            f"Failed to extract repository archive: {e}",
            {"archive": archive_path.name},
        ) from e
    return destination


class RepositoryFetcher:
    """Fetches repository snapshots from the GitHub tarball API."""

    def __init__(self, http: httpx.AsyncClient, api_base_url: str = "https://api.github.com"):
        self.http = http
        self.api_base_url = api_base_url.rstrip("/")

    async def fetch(
        self,
        token: str,
        owner: str,
        repo: str,
        branch: str,
        workspace: Path,
    ) -> Path:
        """Download and extract ``owner/repo@branch`` into ``workspace``.

        Returns:
            Path of the extracted source tree

        Raises:
            ValidationError: If the branch is empty
            DownloadError: If the archive could not be downloaded
            ExtractionError: If the archive could not be extracted
        """
        if not branch or not branch.strip():
            raise ValidationError("Branch is required")

        archive_path = await self.download(token, owner, repo, branch, workspace / ARCHIVE_NAME)
        source_dir = await asyncio.to_thread(
            extract_tarball, archive_path, workspace / SOURCE_DIR_NAME
        )

        try:
            archive_path.unlink()
        except OSError as e:
            logger.warning("fetcher.archive_cleanup_failed", error=str(e))

        logger.info(
            "fetcher.extracted",
            owner=owner,
            repo=repo,
            branch=branch,
            path=str(source_dir),
        )
        return source_dir

    async def download(
        self,
        token: str,
        owner: str,
        repo: str,
        branch: str,
        archive_path: Path,
    ) -> Path:
        """Stream the tarball for a ref to ``archive_path``."""
        url = (
            f"{self.api_base_url}/repos/{quote(owner, safe='')}/{quote(repo, safe='')}"
            f"/tarball/{quote(branch, safe='/')}"
        )
        headers = {
            "Authorization": f"token {token}",
            "Accept": "application/vnd.github.v3.raw",
        }

        logger.info("fetcher.downloading", owner=owner, repo=repo, branch=branch)

        try:
            async with self.http.stream(
                "GET", url, headers=headers, follow_redirects=True
            ) as response:
                if response.is_error:
                    body = (await response.aread()).decode("utf-8", errors="replace")
                    detail = f" - {body[:500]}" if body else ""
                    raise DownloadError(
                        f"Failed to download GitHub tarball: {response.reason_phrase}{detail}",
                        {"status_code": response.status_code},
                    )
                with open(archive_path, "wb") as f:
                    async for chunk in response.aiter_bytes():
                        f.write(chunk)
        except httpx.HTTPError as e:
            archive_path.unlink(missing_ok=True)
            raise DownloadError(f"Failed to download GitHub tarball: {e}") from e
        except OSError as e:
            archive_path.unlink(missing_ok=True)
            raise DownloadError(
                f"Failed to write GitHub tarball: {e}",
                {"archive": archive_path.name},
            ) from e
        except DownloadError:
            archive_path.unlink(missing_ok=True)
            raise

        return archive_path
