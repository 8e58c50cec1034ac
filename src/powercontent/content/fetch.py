"""Retrieval of image sources into the local download cache"""

import asyncio
import hashlib
import logging
import shutil
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union
from urllib.parse import unquote, urlparse

import aiohttp

from ..constants import ContentDefaults

logger = logging.getLogger(__name__)

HTTP_SCHEMES = ("http", "https")


def is_http_source(source: str) -> bool:
    return urlparse(source).scheme.lower() in HTTP_SCHEMES


def cache_path(source: str, cache_dir: Union[str, Path]) -> Path:
    """Build a unique download path that keeps the source's file extension."""
    digest = hashlib.md5(f"{time.time_ns()}".encode()).hexdigest()
    suffix = Path(unquote(urlparse(source).path)).suffix
    return Path(cache_dir) / f"{digest}{suffix}"


@dataclass
class ImageFetcher:
    """Fetches image sources over HTTP with aiohttp, copying local files directly."""

    timeout_seconds: Optional[float] = None
    user_agent: str = ContentDefaults.USER_AGENT

    def fetch(self, source: str, destination: Path) -> Optional[Path]:
        """Retrieve ``source`` into ``destination``; None when nothing was written."""
        destination.parent.mkdir(parents=True, exist_ok=True)
        if is_http_source(source):
            return self._fetch_http(source, destination)
        return self._copy_local(source, destination)

    def _fetch_http(self, source: str, destination: Path) -> Optional[Path]:
        try:
            asyncio.run(self.download(source, destination))
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            logger.debug(f"Could not download {source}: {e}")
            destination.unlink(missing_ok=True)
            return None
        return destination if destination.exists() else None

    async def download(self, source: str, destination: Path) -> None:
        """Stream an HTTP resource into a file, following redirects."""
        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
        headers = {"User-Agent": self.user_agent}
        async with aiohttp.ClientSession(timeout=timeout, headers=headers) as session:
            async with session.get(source, allow_redirects=True) as response:
                response.raise_for_status()
                with open(destination, "wb") as out:
                    async for chunk in response.content.iter_chunked(64 * 1024):
                        out.write(chunk)

    def _copy_local(self, source: str, destination: Path) -> Optional[Path]:
        parsed = urlparse(source)
        path = Path(unquote(parsed.path if parsed.scheme == "file" else source))
        try:
            shutil.copyfile(path, destination)
        except OSError as e:
            logger.debug(f"Could not copy {path}: {e}")
            return None
        return destination
