"""Tests for the remote fetcher."""

import json
import tempfile
from pathlib import Path

import httpx
import pytest

from packs.fetcher import FetchError, RemoteFetcher, TooManyRedirectsError


def redirect_chain(request: httpx.Request) -> httpx.Response:
    """``/r/<n>`` redirects n times before serving the payload."""
    parts = request.url.path.strip("/").split("/")
    if parts[0] == "r":
        remaining = int(parts[1])
        if remaining == 0:
            return httpx.Response(200, content=b"payload")
        return httpx.Response(302, headers={"location": f"/r/{remaining - 1}"})
    if parts[0] == "relative":
        return httpx.Response(301, headers={"location": "../data/file.bin"})
    if parts == ["data", "file.bin"]:
        return httpx.Response(200, content=b"relative payload")
    if parts[0] == "json":
        return httpx.Response(200, content=json.dumps({"packs": []}).encode())
    if parts[0] == "garbage":
        return httpx.Response(200, content=b"{not json")
    if parts[0] == "broken":
        raise httpx.ConnectError("connection refused", request=request)
    return httpx.Response(404)


@pytest.fixture
def fetcher() -> RemoteFetcher:
    return RemoteFetcher(transport=httpx.MockTransport(redirect_chain))


class TestDownload:
    @pytest.mark.asyncio
    async def test_follows_up_to_the_limit(self, fetcher: RemoteFetcher, tmp_path: Path) -> None:
        dest = tmp_path / "file"

        await fetcher.download("https://example.com/r/5", dest)

        assert dest.read_bytes() == b"payload"

    @pytest.mark.asyncio
    async def test_one_redirect_too_many(self, fetcher: RemoteFetcher, tmp_path: Path) -> None:
        with pytest.raises(TooManyRedirectsError):
            await fetcher.download("https://example.com/r/6", tmp_path / "file")

    @pytest.mark.asyncio
    async def test_custom_limit(self, tmp_path: Path) -> None:
        fetcher = RemoteFetcher(max_redirects=1, transport=httpx.MockTransport(redirect_chain))

        await fetcher.download("https://example.com/r/1", tmp_path / "ok")
        with pytest.raises(TooManyRedirectsError):
            await fetcher.download("https://example.com/r/2", tmp_path / "too-far")

    @pytest.mark.asyncio
    async def test_relative_location(self, fetcher: RemoteFetcher, tmp_path: Path) -> None:
        dest = tmp_path / "file"

        await fetcher.download("https://example.com/relative/start", dest)

        assert dest.read_bytes() == b"relative payload"

    @pytest.mark.asyncio
    async def test_http_error_status(self, fetcher: RemoteFetcher, tmp_path: Path) -> None:
        with pytest.raises(FetchError, match="404"):
            await fetcher.download("https://example.com/missing", tmp_path / "file")

    @pytest.mark.asyncio
    async def test_transport_error(self, fetcher: RemoteFetcher, tmp_path: Path) -> None:
        with pytest.raises(FetchError):
            await fetcher.download("https://example.com/broken", tmp_path / "file")

    @pytest.mark.asyncio
    async def test_malformed_url(self, fetcher: RemoteFetcher, tmp_path: Path) -> None:
        with pytest.raises(FetchError):
            await fetcher.download("http://[::1/pack.zip", tmp_path / "file")
        with pytest.raises(FetchError):
            await fetcher.get_json("http://[::1/packs.json")

    @pytest.mark.asyncio
    async def test_large_body_is_written_completely(self, tmp_path: Path) -> None:
        body = bytes(range(256)) * 4096

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=body)

        fetcher = RemoteFetcher(transport=httpx.MockTransport(handler))
        dest = tmp_path / "big.zip"

        await fetcher.download("https://example.com/big.zip", dest)

        assert dest.read_bytes() == body

    @pytest.mark.asyncio
    async def test_scratch_file_removed_on_failure(
        self, fetcher: RemoteFetcher, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        created: list[Path] = []
        real_mkstemp = tempfile.mkstemp

        def recording_mkstemp(*args, **kwargs):
            fd, name = real_mkstemp(*args, dir=tmp_path, **kwargs)
            created.append(Path(name))
            return fd, name

        monkeypatch.setattr(tempfile, "mkstemp", recording_mkstemp)

        with pytest.raises(FetchError):
            await fetcher.download_to_scratch("https://example.com/missing")

        assert len(created) == 1
        assert not created[0].exists()

    @pytest.mark.asyncio
    async def test_scratch_file_kept_on_success(self, fetcher: RemoteFetcher) -> None:
        scratch = await fetcher.download_to_scratch("https://example.com/r/0")
        try:
            assert scratch.read_bytes() == b"payload"
            assert scratch.name.startswith("projecthub-pack-")
        finally:
            scratch.unlink()


class TestGetJson:
    @pytest.mark.asyncio
    async def test_decodes_body(self, fetcher: RemoteFetcher) -> None:
        assert await fetcher.get_json("https://example.com/json") == {"packs": []}

    @pytest.mark.asyncio
    async def test_invalid_json(self, fetcher: RemoteFetcher) -> None:
        with pytest.raises(FetchError, match="Invalid JSON"):
            await fetcher.get_json("https://example.com/garbage")
