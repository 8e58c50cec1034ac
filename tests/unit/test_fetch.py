"""Tests for image source retrieval."""

from pathlib import Path

import aiohttp
import pytest
from aiohttp import web
from aiohttp import test_utils

from powercontent.content.fetch import ImageFetcher, cache_path, is_http_source

pytestmark = pytest.mark.unit


def test_is_http_source():
    assert is_http_source("http://example.com/a.png")
    assert is_http_source("HTTPS://example.com/a.png")
    assert not is_http_source("/var/images/a.png")
    assert not is_http_source("file:///var/images/a.png")


def test_cache_path_keeps_extension(tmp_path):
    first = cache_path("http://example.com/some%20photo.jpeg?size=large", tmp_path)
    second = cache_path("http://example.com/some%20photo.jpeg?size=large", tmp_path)

    assert first.parent == tmp_path
    assert first.suffix == ".jpeg"
    assert first != second


class TestImageFetcher:
    def test_copies_local_files(self, tmp_path):
        source = tmp_path / "my photo.png"
        source.write_bytes(b"png")
        destination = tmp_path / "cache" / "out.png"

        result = ImageFetcher().fetch(str(source).replace(" ", "%20"), destination)

        assert result == destination
        assert destination.read_bytes() == b"png"

    def test_copies_file_urls(self, tmp_path):
        source = tmp_path / "pic.png"
        source.write_bytes(b"png")
        destination = tmp_path / "out.png"

        assert ImageFetcher().fetch(source.as_uri(), destination) == destination

    def test_missing_local_file(self, tmp_path):
        assert ImageFetcher().fetch(str(tmp_path / "nope.png"), tmp_path / "out.png") is None

    def test_http_download(self, tmp_path, monkeypatch):
        async def fake_download(self, source, destination):
            Path(destination).write_bytes(b"remote:" + source.encode())

        monkeypatch.setattr(ImageFetcher, "download", fake_download)
        destination = tmp_path / "cache" / "out.jpg"

        result = ImageFetcher(timeout_seconds=5).fetch("https://example.com/a.jpg", destination)

        assert result == destination
        assert destination.read_bytes() == b"remote:https://example.com/a.jpg"

    def test_http_failure_cleans_up(self, tmp_path, monkeypatch):
        async def failing_download(self, source, destination):
            Path(destination).write_bytes(b"partial")
            raise aiohttp.ClientConnectionError("connection reset")

        monkeypatch.setattr(ImageFetcher, "download", failing_download)
        destination = tmp_path / "out.jpg"

        assert ImageFetcher().fetch("http://example.com/a.jpg", destination) is None
        assert not destination.exists()


@pytest.fixture
def seen():
    return {}


@pytest.fixture
def image_app(seen):
    """Small image server: one image, a redirect to it and nothing else."""

    async def image(request):
        seen["user_agent"] = request.headers.get("User-Agent")
        return web.Response(body=b"\x89PNG" + b"\x01" * 200_000, content_type="image/png")

    async def moved(request):
        raise web.HTTPFound("/image.png")

    app = web.Application()
    app.router.add_get("/image.png", image)
    app.router.add_get("/old.png", moved)
    return app


class TestDownload:
    """Run the aiohttp download against a local server."""

    @pytest.mark.asyncio
    async def test_streams_response_after_redirect(self, image_app, seen, tmp_path):
        destination = tmp_path / "out.png"
        fetcher = ImageFetcher(timeout_seconds=10, user_agent="Importer/2.0")

        async with test_utils.TestServer(image_app) as server:
            await fetcher.download(str(server.make_url("/old.png")), destination)

        data = destination.read_bytes()
        assert data.startswith(b"\x89PNG")
        assert len(data) == 200_004
        assert seen["user_agent"] == "Importer/2.0"

    @pytest.mark.asyncio
    async def test_missing_resource_raises(self, image_app, tmp_path):
        async with test_utils.TestServer(image_app) as server:
            with pytest.raises(aiohttp.ClientResponseError) as excinfo:
                await ImageFetcher().download(str(server.make_url("/nope.png")), tmp_path / "out.png")

        assert excinfo.value.status == 404
        assert not (tmp_path / "out.png").exists()
