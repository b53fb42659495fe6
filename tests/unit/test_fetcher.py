"""Unit tests for the repository fetcher."""

import io
import tarfile

import httpx
import pytest

from app.core.exceptions import DownloadError, ExtractionError, ValidationError
from app.pipeline.fetcher import RepositoryFetcher, extract_tarball

ROOT = "acme-site-1a2b3c4"


def make_tarball(files: dict[str, bytes], root: str = ROOT) -> bytes:
    """Build a gzipped tarball laid out the way GitHub serves them."""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as archive:
        directory = tarfile.TarInfo(root)
        directory.type = tarfile.DIRTYPE
        archive.addfile(directory)
        for name, content in files.items():
            info = tarfile.TarInfo(f"{root}/{name}" if root else name)
            info.size = len(content)
            archive.addfile(info, io.BytesIO(content))
    return buffer.getvalue()


class TestExtractTarball:
    """Tests for extract_tarball."""

    def test_strips_root_directory(self, tmp_path):
        archive = tmp_path / "source.tar.gz"
        archive.write_bytes(
            make_tarball({"index.html": b"<h1>hi</h1>", "assets/app.js": b"1;"})
        )

        dest = extract_tarball(archive, tmp_path / "source")

        assert (dest / "index.html").read_bytes() == b"<h1>hi</h1>"
        assert (dest / "assets" / "app.js").read_bytes() == b"1;"
        assert not (dest / ROOT).exists()

    def test_rejects_path_traversal(self, tmp_path):
        archive = tmp_path / "source.tar.gz"
        archive.write_bytes(make_tarball({"../../escape.txt": b"x"}))

        with pytest.raises(ExtractionError):
            extract_tarball(archive, tmp_path / "source")

        assert not (tmp_path.parent / "escape.txt").exists()

    def test_corrupt_archive(self, tmp_path):
        archive = tmp_path / "source.tar.gz"
        archive.write_bytes(b"not a tarball")

        with pytest.raises(ExtractionError):
            extract_tarball(archive, tmp_path / "source")


class TestRepositoryFetcher:
    """Tests for RepositoryFetcher."""

    @pytest.mark.asyncio
    async def test_fetch(self, tmp_path):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, content=make_tarball({"index.html": b"ok"}))

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            fetcher = RepositoryFetcher(http, "https://github.test")
            source = await fetcher.fetch("gh-token", "acme", "site", "main", tmp_path)

        assert source == tmp_path / "source"
        assert (source / "index.html").read_bytes() == b"ok"
        assert not (tmp_path / "source.tar.gz").exists()

        request = seen[0]
        assert str(request.url) == "https://github.test/repos/acme/site/tarball/main"
        assert request.headers["Authorization"] == "token gh-token"

    @pytest.mark.asyncio
    async def test_branch_with_slash(self, tmp_path):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, content=make_tarball({"index.html": b"ok"}))

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            await RepositoryFetcher(http, "https://github.test").fetch(
                "t", "acme", "site", "feature/login", tmp_path
            )

        assert seen[0].url.path == "/repos/acme/site/tarball/feature/login"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("branch", ["", "   "])
    async def test_empty_branch_rejected_before_download(self, tmp_path, branch):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            with pytest.raises(ValidationError, match="Branch is required"):
                await RepositoryFetcher(http).fetch("t", "acme", "site", branch, tmp_path)

    @pytest.mark.asyncio
    async def test_http_error(self, tmp_path):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, text='{"message":"Not Found"}')

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            with pytest.raises(DownloadError) as exc_info:
                await RepositoryFetcher(http).fetch("t", "acme", "site", "nope", tmp_path)

        assert exc_info.value.message.startswith("Failed to download GitHub tarball: Not Found")
        assert exc_info.value.details["status_code"] == 404
        assert not (tmp_path / "source.tar.gz").exists()

    @pytest.mark.asyncio
    async def test_transport_error(self, tmp_path):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            with pytest.raises(DownloadError, match="connection refused"):
                await RepositoryFetcher(http).fetch("t", "acme", "site", "main", tmp_path)

    @pytest.mark.asyncio
    async def test_archive_write_failure(self, tmp_path):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=make_tarball({"index.html": b"ok"}))

        workspace = tmp_path / "gone"

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            with pytest.raises(DownloadError, match="Failed to write GitHub tarball"):
                await RepositoryFetcher(http).fetch("t", "acme", "site", "main", workspace)

        assert not workspace.exists()
