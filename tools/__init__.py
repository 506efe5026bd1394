from tools.asset_fetcher import AssetDownloadError, AssetFetcher

__all__ = ["AssetDownloadError", "AssetFetcher"]
