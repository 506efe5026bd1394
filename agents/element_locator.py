"""
Element locator: find an editor capability by name.

Step logic asks for "export_button" or "file_input"; only this class and
EditorSelectors know what that means on the page today.
"""

import logging
from typing import Optional

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from agents.capcut_selectors import EditorSelectors, text_xpath

logger = logging.getLogger(__name__)


class ElementLocator:
    """Best-effort structural search over the current page."""

    def __init__(self, page, selectors: EditorSelectors = None):
        self.page = page
        self.selectors = selectors or EditorSelectors()

    def selector(self, name: str) -> str:
        return self.selectors.get(name)

    async def find(self, name: str):
        """First element matching the capability, or None."""
        return await self.page.query_selector(self.selector(name))

    async def find_all(self, name: str) -> list:
        return await self.page.query_selector_all(self.selector(name))

    async def wait_for(self, name: str, timeout_ms: int, state: str = "visible"):
        """
        Wait up to timeout_ms for the capability to reach `state`
        ("visible", or "attached" for elements that may render hidden).

        Returns the element, or None if the wait timed out.
        """
        try:
            return await self.page.wait_for_selector(
                self.selector(name), timeout=timeout_ms, state=state
            )
        except PlaywrightTimeoutError:
            logger.debug(f"Timed out after {timeout_ms}ms waiting for {name}")
            return None

    async def find_by_text(self, phrases, tag: str = "*") -> Optional[object]:
        """First `tag` element whose text contains any of the phrases."""
        return await self.page.query_selector(text_xpath(phrases, tag=tag))
