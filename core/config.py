"""
CapCut render runner: settings and timing constants.

Everything the run reads from the environment lives on Settings.
The caps, wait budgets and pauses below stand in for real UI-ready
signals; tune them here rather than in the step code.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

EDITOR_URL = "https://www.capcut.com/tools/editor"
DEFAULT_CHROME_EXEC = "/usr/bin/google-chrome-stable"
DEFAULT_ASSET_DIR = Path("/tmp/capcut_assets")
DEFAULT_OUTPUT_DIR = Path("/tmp")
SCREENSHOT_DIR_NAME = "capcut_screenshots"

VIEWPORT = {"width": 1280, "height": 800}

# Caps
MAX_TIMELINE_CLIPS = 12
MAX_CAPTIONS = 6

# Waits (milliseconds)
NAVIGATION_TIMEOUT = 60000
LOGIN_BUTTON_TIMEOUT = 8000
LOGIN_NAVIGATION_TIMEOUT = 20000
THUMBNAIL_TIMEOUT = 10000
COMPLETION_TIMEOUT = 120000

# Fixed pauses (milliseconds)
PAUSE_AFTER_LOGIN_CLICK = 2000
PAUSE_BEFORE_NEW_PROJECT = 1500
PAUSE_AFTER_NEW_PROJECT = 1200
PAUSE_AFTER_TEMPLATE = 1200
PAUSE_AFTER_UPLOAD_TRIGGER = 800
PAUSE_AFTER_THUMB_CLICK = 400
PAUSE_AFTER_TEXT_PANEL = 600
PAUSE_AFTER_ADD_TEXT = 400
PAUSE_AFTER_CAPTION = 300

# Typing delays (milliseconds per key)
CREDENTIAL_TYPE_DELAY = 50
CAPTION_TYPE_DELAY = 20
THUMB_CLICK_DELAY = 100

# HTTP (seconds)
DOWNLOAD_TIMEOUT = 300


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() not in ("0", "false", "no", "off")


@dataclass
class Settings:
    """Runtime configuration for one render run."""

    email: Optional[str] = None
    password: Optional[str] = None
    chrome_exec: str = DEFAULT_CHROME_EXEC
    event_path: Optional[Path] = None
    editor_url: str = EDITOR_URL
    asset_dir: Path = DEFAULT_ASSET_DIR
    output_dir: Path = DEFAULT_OUTPUT_DIR
    selectors_file: Optional[Path] = None
    headless: bool = True
    viewport: dict = field(default_factory=lambda: dict(VIEWPORT))

    @property
    def has_credentials(self) -> bool:
        return bool(self.email and self.password)

    @property
    def screenshot_dir(self) -> Path:
        return self.output_dir / SCREENSHOT_DIR_NAME

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables (call load_dotenv() first)."""
        event_path = os.environ.get("GITHUB_EVENT_PATH")
        selectors_file = os.environ.get("CAPCUT_SELECTORS_FILE")
        return cls(
            email=os.environ.get("CAPCUT_EMAIL") or None,
            password=os.environ.get("CAPCUT_PASSWORD") or None,
            chrome_exec=os.environ.get("CHROME_EXEC") or DEFAULT_CHROME_EXEC,
            event_path=Path(event_path) if event_path else None,
            editor_url=os.environ.get("CAPCUT_EDITOR_URL") or EDITOR_URL,
            asset_dir=Path(os.environ.get("CAPCUT_ASSET_DIR") or DEFAULT_ASSET_DIR),
            output_dir=Path(os.environ.get("CAPCUT_OUTPUT_DIR") or DEFAULT_OUTPUT_DIR),
            selectors_file=Path(selectors_file) if selectors_file else None,
            headless=_env_flag("CAPCUT_HEADLESS", True),
        )
