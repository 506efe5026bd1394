"""
Shared test fixtures: an in-memory stand-in for the CapCut editor page,
a fake browser session, and an httpx mock transport.
"""

import httpx
import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from agents.capcut_selectors import EditorSelectors
from core.config import Settings


class FakeElement:
    """Records what the agent did to it."""

    def __init__(self, name: str, attrs: dict = None, on_click=None, fail_click: bool = False):
        self.name = name
        self.attrs = attrs or {}
        self.on_click = on_click
        self.fail_click = fail_click
        self.clicks = 0
        self.typed = []
        self.focused = 0
        self.files = None

    async def click(self, **kwargs):
        if self.fail_click:
            raise RuntimeError(f"{self.name} is detached")
        self.clicks += 1
        if self.on_click:
            self.on_click()

    async def type(self, text, delay=None):
        self.typed.append(text)

    async def focus(self):
        self.focused += 1

    async def set_input_files(self, files):
        self.files = list(files)

    async def get_attribute(self, name):
        return self.attrs.get(name)


class FakeKeyboard:
    def __init__(self):
        self.typed = []

    async def type(self, text, delay=None):
        self.typed.append(text)


class FakeEditorPage:
    """Answers selector queries from a dict of selector -> elements."""

    def __init__(self, url: str = "https://www.capcut.com/editor/123"):
        self.url = url
        self.elements = {}
        self.keyboard = FakeKeyboard()
        self.pauses = []
        self.waits = []
        self.wait_states = []
        self.load_states = []
        self.screenshots = []

    def add(self, selector: str, *elements):
        self.elements.setdefault(selector, []).extend(elements)
        return elements[0] if len(elements) == 1 else elements

    async def query_selector(self, selector):
        found = self.elements.get(selector) or []
        return found[0] if found else None

    async def query_selector_all(self, selector):
        return list(self.elements.get(selector) or [])

    async def wait_for_selector(self, selector, timeout=None, state="visible"):
        self.waits.append((selector, timeout))
        self.wait_states.append((selector, state))
        found = self.elements.get(selector) or []
        if not found:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {selector}")
        return found[0]

    async def wait_for_timeout(self, ms):
        self.pauses.append(ms)

    async def wait_for_load_state(self, state="load", timeout=None):
        self.load_states.append((state, timeout))

    async def screenshot(self, path=None, full_page=False):
        self.screenshots.append(path)


def build_editor(selectors: EditorSelectors = None, **overrides) -> FakeEditorPage:
    """
    A page with every control the happy path needs.

    Pass `<capability>=None` to remove a control, or an element/list to
    replace it.
    """
    sel = selectors or EditorSelectors()
    page = FakeEditorPage()
    defaults = {
        "login_button": FakeElement("login_button"),
        "email_input": FakeElement("email_input"),
        "password_input": FakeElement("password_input"),
        "login_submit": FakeElement("login_submit"),
        "new_project": FakeElement("new_project"),
        "file_input": FakeElement("file_input"),
        "media_thumbnail": [FakeElement(f"thumb_{i}") for i in range(2)],
        "text_panel": FakeElement("text_panel"),
        "add_text": FakeElement("add_text"),
        "text_entry": FakeElement("text_entry"),
        "export_button": FakeElement("export_button"),
        "completion_indicator": FakeElement(
            "completion_indicator", attrs={"href": "https://cdn.capcut.test/render/out.mp4"}
        ),
    }
    defaults.update(overrides)
    for name, value in defaults.items():
        if value is None:
            continue
        items = value if isinstance(value, list) else [value]
        page.add(sel.get(name), *items)
    return page


class FakeBrowser:
    """Stands in for CapCutBrowser; hands out a prepared FakeEditorPage."""

    instances = []

    def __init__(self, settings, page=None, start_ok=True, open_ok=True):
        self.settings = settings
        self.page = page if page is not None else build_editor()
        self.start_ok = start_ok
        self.open_ok = open_ok
        self.started = False
        self.stopped = False
        FakeBrowser.instances.append(self)

    async def start(self):
        self.started = True
        return self.start_ok

    async def open_editor(self):
        return self.open_ok

    async def take_screenshot(self, name=None):
        self.page.screenshots.append(name)
        return None

    async def stop(self):
        self.stopped = True


def mock_transport(routes: dict) -> httpx.MockTransport:
    """routes: url -> (status_code, body bytes). Unknown URLs return 404."""
    requested = []

    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        requested.append(url)
        status, body = routes.get(url, (404, b"not found"))
        return httpx.Response(status, content=body)

    transport = httpx.MockTransport(handler)
    transport.requested = requested
    return transport


@pytest.fixture(autouse=True)
def _reset_fake_browsers():
    FakeBrowser.instances.clear()
    yield
    FakeBrowser.instances.clear()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        email="runner@example.com",
        password="hunter2",
        asset_dir=tmp_path / "assets",
        output_dir=tmp_path / "out",
    )
