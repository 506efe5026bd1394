"""
Asset fetcher tests: HTTP is served by httpx.MockTransport.

Usage:
    pytest test_asset_fetcher.py
"""

import asyncio

import pytest

from conftest import mock_transport
from tools.asset_fetcher import AssetDownloadError, AssetFetcher, asset_filename


def test_asset_filename_uses_url_extension():
    assert asset_filename(0, "https://x/clips/a.MOV?sig=abc") == "asset_0.MOV"
    assert asset_filename(3, "https://x/b.png") == "asset_3.png"
    assert asset_filename(1, "https://drive.google.com/uc?export=download&id=123") == "asset_1.mp4"


def test_fetch_assets_one_file_per_url_in_order(tmp_path):
    urls = [f"http://x/clip{i}.mp4" for i in range(4)]
    transport = mock_transport({url: (200, f"clip-{i}".encode()) for i, url in enumerate(urls)})
    fetcher = AssetFetcher(transport=transport)

    files = asyncio.run(fetcher.fetch_assets(urls, tmp_path / "assets"))

    assert [f.name for f in files] == ["asset_0.mp4", "asset_1.mp4", "asset_2.mp4", "asset_3.mp4"]
    assert [f.read_bytes() for f in files] == [b"clip-0", b"clip-1", b"clip-2", b"clip-3"]
    assert transport.requested == urls
    assert sorted(p.name for p in (tmp_path / "assets").iterdir()) == [f.name for f in files]


def test_fetch_assets_fails_fast_on_error_status(tmp_path):
    urls = ["http://x/a.mp4", "http://x/missing.mp4", "http://x/c.mp4"]
    transport = mock_transport({
        "http://x/a.mp4": (200, b"a"),
        "http://x/missing.mp4": (403, b"denied"),
        "http://x/c.mp4": (200, b"c"),
    })
    fetcher = AssetFetcher(transport=transport)

    with pytest.raises(AssetDownloadError) as exc_info:
        asyncio.run(fetcher.fetch_assets(urls, tmp_path))

    assert exc_info.value.url == "http://x/missing.mp4"
    assert exc_info.value.status_code == 403
    # Nothing fetched after the failure
    assert "http://x/c.mp4" not in transport.requested
    assert not (tmp_path / "asset_2.mp4").exists()


def test_fetch_artifact_writes_requested_name(tmp_path):
    transport = mock_transport({"https://cdn.test/render.mp4": (200, b"rendered")})
    fetcher = AssetFetcher(transport=transport)

    saved = asyncio.run(fetcher.fetch_artifact("https://cdn.test/render.mp4", tmp_path / "out" / "out.mp4"))

    assert saved == tmp_path / "out" / "out.mp4"
    assert saved.read_bytes() == b"rendered"


def test_fetch_artifact_error(tmp_path):
    fetcher = AssetFetcher(transport=mock_transport({}))
    with pytest.raises(AssetDownloadError):
        asyncio.run(fetcher.fetch_artifact("https://cdn.test/gone.mp4", tmp_path / "out.mp4"))
    assert not (tmp_path / "out.mp4").exists()
