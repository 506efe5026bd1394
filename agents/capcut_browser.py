"""
CapCut Browser Controller: the runner's eyes and hands.

Wraps Playwright to give one headless Chromium session on a CI runner.
GitHub-hosted runners have no user namespace sandbox and a tiny /dev/shm,
so the launch flags below are required there.

Requires:
    pip install playwright
    playwright install chromium   # only if CHROME_EXEC is not installed
"""

import logging
import os
from datetime import datetime
from pathlib import Path

from core.config import NAVIGATION_TIMEOUT, Settings

logger = logging.getLogger(__name__)

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--window-size=1280,800",
]


class CapCutBrowser:
    """
    Playwright session for the CapCut web editor.

    One browser, one context, one page. start() and open_editor() return
    False on failure and log why; the caller decides that is fatal.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self._playwright = None
        self.browser = None
        self.context = None
        self.page = None
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> bool:
        """Launch Chromium. Returns True if a page is ready."""
        try:
            from playwright.async_api import async_playwright

            self._playwright = await async_playwright().start()

            launch_kwargs = {
                "headless": self.settings.headless,
                "args": LAUNCH_ARGS,
            }
            chrome_exec = self.settings.chrome_exec
            if chrome_exec and os.path.exists(chrome_exec):
                launch_kwargs["executable_path"] = chrome_exec
            else:
                logger.warning(
                    f"Chrome not found at {chrome_exec}; using Playwright's bundled Chromium"
                )

            self.browser = await self._playwright.chromium.launch(**launch_kwargs)
            self.context = await self.browser.new_context(viewport=self.settings.viewport)
            self.page = await self.context.new_page()
            self._running = True

            logger.info(
                f"Browser started ({'headless' if self.settings.headless else 'visible'} mode)"
            )
            return True

        except ImportError as e:
            logger.error(
                f"playwright import failed: {e}. "
                "Run: pip install playwright && playwright install chromium"
            )
            return False
        except Exception as e:
            logger.error(f"Failed to start browser: {e}")
            await self.stop()
            return False

    async def open_editor(self) -> bool:
        """Navigate to the editor and wait for network quiescence. No retries."""
        if not self.page:
            logger.error("Browser not running")
            return False

        url = self.settings.editor_url
        logger.info(f"Navigating to {url}...")
        try:
            await self.page.goto(url, wait_until="networkidle", timeout=NAVIGATION_TIMEOUT)
            logger.info(f"Navigated to: {self.page.url}")
            return True
        except Exception as e:
            logger.error(f"Navigation failed: {e}")
            return False

    async def take_screenshot(self, name: str = None) -> Path | None:
        """
        Take a screenshot of the current page.

        Returns path to saved screenshot, or None on failure.
        """
        if not self.page:
            return None

        screenshot_dir = self.settings.screenshot_dir
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = f"{name}_{timestamp}.png" if name else f"screenshot_{timestamp}.png"
        filepath = screenshot_dir / filename

        try:
            screenshot_dir.mkdir(parents=True, exist_ok=True)
            await self.page.screenshot(path=str(filepath), full_page=False)
            logger.info(f"Screenshot saved: {filepath}")
            return filepath
        except Exception as e:
            logger.error(f"Screenshot failed: {e}")
            return None

    async def stop(self):
        """Close page, context, browser and the Playwright driver."""
        try:
            if self.context:
                await self.context.close()
            if self.browser:
                await self.browser.close()
        except Exception as e:
            logger.error(f"Error during browser shutdown: {e}")
        finally:
            if self._playwright:
                try:
                    await self._playwright.stop()
                except Exception as e:
                    logger.error(f"Error stopping Playwright: {e}")
            was_running = self._running
            self._running = False
            self._playwright = None
            self.browser = None
            self.context = None
            self.page = None
            if was_running:
                logger.info("Browser stopped")
