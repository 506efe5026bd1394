"""
CapCut editor selectors.

CapCut's web UI is not a contract: class names and button labels change
without notice. Every selector the runner depends on is named here, and
any of them can be overridden from a YAML file without touching the step
logic:

    # config/capcut_selectors.yaml
    selectors:
      export_button: "xpath=//button[contains(., 'Export video')]"
      completion_indicator: "a[download]"
"""

import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_SELECTORS_FILE = Path("config/capcut_selectors.yaml")


def _xpath_literal(phrase: str) -> str:
    if "'" not in phrase:
        return f"'{phrase}'"
    if '"' not in phrase:
        return f'"{phrase}"'
    pieces = phrase.split("'")
    return "concat(" + ", \"'\", ".join(f"'{p}'" for p in pieces) + ")"


def text_xpath(phrases, tag: str = "button", ignore_case: bool = False) -> str:
    """
    Playwright XPath selector matching `tag` elements whose text contains
    any of `phrases`. Phrases inside a tuple must all be present.
    """
    clauses = []
    for phrase in phrases:
        group = phrase if isinstance(phrase, tuple) else (phrase,)
        parts = []
        for p in group:
            if ignore_case:
                upper, lower = p.upper(), p.lower()
                parts.append(
                    f"contains(translate(., {_xpath_literal(upper)}, {_xpath_literal(lower)}), "
                    f"{_xpath_literal(lower)})"
                )
            else:
                parts.append(f"contains(., {_xpath_literal(p)})")
        clauses.append(parts[0] if len(parts) == 1 else "(" + " and ".join(parts) + ")")
    return f"xpath=//{tag}[{' or '.join(clauses)}]"


@dataclass(frozen=True)
class EditorSelectors:
    """One Playwright selector per editor capability."""

    login_button: str = 'button[data-testid="login-btn"], a[href*="login"]'
    email_input: str = 'input[type="email"], input[name="email"]'
    password_input: str = 'input[type="password"], input[name="password"]'
    login_submit: str = 'button[type="submit"], button[data-testid="submit"]'
    new_project: str = text_xpath(["New Project", "Create"])
    file_input: str = "input[type=file]"
    upload_trigger: str = text_xpath(["Upload", "Import"], ignore_case=True)
    media_thumbnail: str = ".asset-thumb, .media-thumb, .thumbnail"
    text_panel: str = text_xpath(["Text", "Add text"])
    add_text: str = text_xpath(["Add text", ("Add", "Text")])
    text_entry: str = 'textarea, input[role="textbox"], div[contenteditable="true"]'
    export_button: str = text_xpath(["Export", "Download"])
    completion_indicator: str = "a.download-link, button.download"

    @classmethod
    def names(cls) -> list[str]:
        return [f.name for f in fields(cls)]

    def get(self, name: str) -> str:
        if name not in self.names():
            raise KeyError(f"Unknown editor capability: {name}")
        return getattr(self, name)


def load_selectors(path: Optional[Path] = None) -> EditorSelectors:
    """
    Load selector overrides from YAML on top of the defaults.

    Missing file means defaults. Unknown keys are rejected so a typo in
    the override file does not silently fall back to a stale selector.
    """
    defaults = EditorSelectors()
    if path is None:
        path = DEFAULT_SELECTORS_FILE
        if not path.exists():
            return defaults

    path = Path(path)
    if not path.exists():
        logger.warning(f"Selector file {path} not found; using built-in selectors")
        return defaults

    with open(path, encoding="utf-8") as f:
        try:
            config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"{path}: invalid YAML: {e}")

    overrides = config.get("selectors", config) if isinstance(config, dict) else None
    if not isinstance(overrides, dict):
        raise ValueError(f"{path}: expected a mapping of capability -> selector")

    unknown = sorted(set(overrides) - set(EditorSelectors.names()))
    if unknown:
        raise ValueError(f"{path}: unknown selector names: {', '.join(unknown)}")

    cleaned = {name: str(value) for name, value in overrides.items() if value}
    logger.info(f"Loaded {len(cleaned)} selector override(s) from {path}")
    return replace(defaults, **cleaned)
