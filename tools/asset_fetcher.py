"""
Asset fetcher: pulls job media down to local disk and the finished
render back from CapCut.

Inputs are fetched sequentially, in payload order. Any failed input
download aborts the run; there is no partial upload.
"""

import logging
from pathlib import Path, PurePosixPath
from typing import Optional
from urllib.parse import urlparse

import httpx

from core.config import DOWNLOAD_TIMEOUT

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = ".mp4"


class AssetDownloadError(Exception):
    """A download returned a non-success status or failed in transport."""

    def __init__(self, url: str, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


def asset_filename(index: int, url: str) -> str:
    """asset_<index><ext>, extension taken from the URL path (query ignored)."""
    suffix = PurePosixPath(urlparse(url).path).suffix
    return f"asset_{index}{suffix or DEFAULT_EXTENSION}"


class AssetFetcher:
    """HTTP downloads for input assets and the exported video."""

    def __init__(self, timeout: float = DOWNLOAD_TIMEOUT, transport: httpx.AsyncBaseTransport = None):
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            transport=self._transport,
        )

    async def _download(self, client: httpx.AsyncClient, url: str) -> bytes:
        try:
            response = await client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise AssetDownloadError(url, f"Failed to download {url}: {e}")

        if not response.is_success:
            raise AssetDownloadError(
                url,
                f"Failed to download {url}: HTTP {response.status_code}",
                status_code=response.status_code,
            )
        return response.content

    async def fetch_assets(self, urls, dest_dir: Path) -> list[Path]:
        """
        Download every URL into dest_dir.

        Returns local paths in the same order as `urls`.
        Raises AssetDownloadError on the first failure.
        """
        dest_dir = Path(dest_dir)
        dest_dir.mkdir(parents=True, exist_ok=True)

        logger.info(f"Downloading {len(urls)} asset(s) to {dest_dir}...")
        local_files = []
        async with self._client() as client:
            for i, url in enumerate(urls):
                data = await self._download(client, url)
                filepath = dest_dir / asset_filename(i, url)
                filepath.write_bytes(data)
                local_files.append(filepath)
                logger.info(f"Saved {filepath} ({len(data) // 1024}KB)")
        return local_files

    async def fetch_artifact(self, url: str, dest_path: Path) -> Path:
        """Download the exported video to dest_path."""
        dest_path = Path(dest_path)
        dest_path.parent.mkdir(parents=True, exist_ok=True)

        async with self._client() as client:
            data = await self._download(client, url)

        dest_path.write_bytes(data)
        logger.info(f"Saved output to {dest_path} ({len(data) // 1024}KB)")
        return dest_path
