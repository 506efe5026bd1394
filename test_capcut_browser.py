"""
Browser session tests: Chromium launch flags and viewport.

Playwright is replaced by a stand-in that records the launch call.

Usage:
    pytest test_capcut_browser.py
"""

import asyncio

import playwright.async_api

from agents.capcut_browser import LAUNCH_ARGS, CapCutBrowser


class RecordingPlaywright:
    def __init__(self):
        self.launch_kwargs = None
        self.viewport = None
        self.chromium = self

    async def start(self):
        return self

    async def stop(self):
        pass

    async def launch(self, **kwargs):
        self.launch_kwargs = kwargs
        return self

    async def new_context(self, viewport=None):
        self.viewport = viewport
        return self

    async def new_page(self):
        return object()

    async def close(self):
        pass


def test_launch_flags_are_ci_safe():
    assert "--single-process" not in LAUNCH_ARGS
    for flag in ("--no-sandbox", "--disable-setuid-sandbox", "--disable-dev-shm-usage", "--disable-gpu"):
        assert flag in LAUNCH_ARGS


def test_start_launches_with_flags_and_viewport(settings, monkeypatch):
    recorder = RecordingPlaywright()
    monkeypatch.setattr(playwright.async_api, "async_playwright", lambda: recorder)
    browser = CapCutBrowser(settings)

    assert asyncio.run(browser.start())

    assert recorder.launch_kwargs["args"] == LAUNCH_ARGS
    assert recorder.launch_kwargs["headless"] == settings.headless
    assert recorder.viewport == settings.viewport
    assert browser.is_running
