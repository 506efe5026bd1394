"""
Render job: the single external input of a run.

The dispatching workflow posts a repository_dispatch event; GitHub writes
the event to GITHUB_EVENT_PATH and the job lives under `client_payload`:

    {
      "projectName": "TV-20251021-001",
      "template": "hybrid_action_meme_v2",
      "assetUrls": ["https://drive.google.com/uc?export=download&id=..."],
      "scriptText": "[ {time:0, text:'Hook'}, ... ]",
      "sfx": ["boing.mp3", "recordscratch.mp3"],
      "outputName": "TV-20251021-001.mp4"
    }
"""

import json
import logging
import re
import time
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Any, Optional

logger = logging.getLogger(__name__)

_STRING_RE = re.compile(r'"(?:[^"\\]|\\.)*"|\'(?:[^\'\\]|\\.)*\'')
_BARE_KEY_RE = re.compile(r"([{,]\s*)([A-Za-z_$][\w$]*)\s*:")
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")


class JobError(Exception):
    """Trigger payload is missing, unreadable, or lacks required fields."""
    pass


@dataclass(frozen=True)
class Caption:
    """One caption line to place on the timeline."""
    text: str
    time: Optional[float] = None


@dataclass(frozen=True)
class Job:
    """One render task. Built once from the trigger payload, never mutated."""
    project_name: str
    asset_urls: tuple[str, ...]
    output_name: str
    template: Optional[str] = None
    captions: tuple[Caption, ...] = ()
    script_text: Any = None
    sfx: tuple[str, ...] = ()

    @classmethod
    def from_payload(cls, payload: dict) -> "Job":
        if not isinstance(payload, dict):
            raise JobError("Payload must be a JSON object")

        asset_urls = payload.get("assetUrls")
        if not isinstance(asset_urls, list) or not asset_urls:
            raise JobError("Payload missing required fields. Example: assetUrls[]")
        for url in asset_urls:
            if not isinstance(url, str) or not url.strip():
                raise JobError(f"Invalid asset URL in payload: {url!r}")

        output_name = _clean_output_name(payload.get("outputName"))
        project_name = payload.get("projectName") or Path(output_name).stem

        template = payload.get("template") or None
        sfx = payload.get("sfx") or []
        if not isinstance(sfx, list):
            sfx = [sfx]

        script_text = payload.get("scriptText")
        return cls(
            project_name=str(project_name),
            asset_urls=tuple(url.strip() for url in asset_urls),
            output_name=output_name,
            template=str(template) if template else None,
            captions=tuple(parse_caption_script(script_text)),
            script_text=script_text,
            sfx=tuple(str(s) for s in sfx),
        )


def default_output_name() -> str:
    return f"capcut_export_{int(time.time() * 1000)}.mp4"


def _clean_output_name(name) -> str:
    if not name or not str(name).strip():
        return default_output_name()
    # Keep only the final component so the artifact stays in the output dir
    cleaned = PurePosixPath(str(name).strip().replace("\\", "/")).name
    if cleaned in ("", ".", ".."):
        return default_output_name()
    return cleaned


def load_trigger_payload(path) -> dict:
    """
    Read the dispatch event file and return the job payload.

    Accepts either a full GitHub event (payload under `client_payload`)
    or a bare payload object.
    """
    if path is None:
        raise JobError("GITHUB_EVENT_PATH env var missing. Are you running in GH Actions?")

    event_path = Path(path)
    try:
        with open(event_path, encoding="utf-8") as f:
            event = json.load(f)
    except FileNotFoundError:
        raise JobError(f"Trigger payload file not found: {event_path}")
    except (OSError, json.JSONDecodeError) as e:
        raise JobError(f"Could not read trigger payload {event_path}: {e}")

    if not isinstance(event, dict):
        raise JobError("Trigger payload must be a JSON object")
    if "client_payload" in event:
        return event.get("client_payload") or {}
    return event


# ============================================================
# Caption script parsing
# ============================================================

def parse_caption_script(script) -> list[Caption]:
    """
    Turn the payload's scriptText into caption entries.

    Accepts a list of {time, text} objects or strings, a JSON string of
    the same, the loose JS-object form (`[{time:0, text:'Hook'}]`), or a
    plain text block (one caption per non-blank line).
    """
    if script is None:
        return []

    if isinstance(script, str):
        text = script.strip()
        if not text:
            return []
        structured = _parse_structured(text)
        if structured is None:
            return [Caption(line.strip()) for line in text.splitlines() if line.strip()]
        script = structured

    if isinstance(script, dict):
        script = [script]
    if not isinstance(script, list):
        script = [script]

    captions = []
    for entry in script:
        caption = _caption_from_entry(entry)
        if caption is not None:
            captions.append(caption)
    return captions


def _parse_structured(text: str):
    """Parse JSON (strict, then loose). Returns None for plain text."""
    if not text.startswith(("[", "{")):
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    try:
        return json.loads(_loose_to_json(text))
    except json.JSONDecodeError:
        logger.debug("scriptText is not structured; treating it as plain text")
        return None


def _loose_to_json(text: str) -> str:
    """Quote bare keys, convert single-quoted strings, drop trailing commas."""
    parts = []
    pos = 0
    for match in _STRING_RE.finditer(text):
        parts.append(_fix_unquoted(text[pos:match.start()]))
        literal = match.group(0)
        if literal.startswith("'"):
            inner = literal[1:-1].replace("\\'", "'")
            literal = '"' + re.sub(r'(?<!\\)"', r'\\"', inner) + '"'
        parts.append(literal)
        pos = match.end()
    parts.append(_fix_unquoted(text[pos:]))
    return "".join(parts)


def _fix_unquoted(segment: str) -> str:
    segment = _BARE_KEY_RE.sub(r'\1"\2":', segment)
    return _TRAILING_COMMA_RE.sub(r"\1", segment)


def _caption_from_entry(entry) -> Optional[Caption]:
    if isinstance(entry, dict):
        text = entry.get("text")
        when = _as_seconds(entry.get("time"))
    else:
        text = entry
        when = None

    if text is None or isinstance(text, (dict, list)):
        return None
    text = str(text).strip()
    if not text:
        return None
    return Caption(text=text, time=when)


def _as_seconds(value) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
