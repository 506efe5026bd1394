"""
Run report: explicit per-step outcomes for a render run.

Every UI step returns a StepResult instead of swallowing its own errors.
The run aborts on the first FATAL result; everything else is recorded and
the procedure moves on.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional


class StepStatus(Enum):
    SUCCEEDED = "succeeded"
    SKIPPED = "skipped"            # Nothing to do, or control absent (non-fatal)
    SOFT_FAILED = "soft_failed"    # Error logged and tolerated
    FATAL = "fatal"                # Run aborts


class CompletionOutcome(Enum):
    READY = "ready"                        # Artifact downloaded and saved
    TIMED_OUT = "timed_out"                # Indicator never appeared
    NO_REFERENCE = "no_reference"          # Indicator appeared, no download URL on it
    DOWNLOAD_FAILED = "download_failed"    # URL found, fetch failed


def _jsonable(value):
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    return value


@dataclass
class StepResult:
    """Outcome of one step of the interaction sequence."""
    name: str
    status: StepStatus
    detail: str = ""
    data: dict = field(default_factory=dict)

    @classmethod
    def succeeded(cls, name: str, detail: str = "", **data) -> "StepResult":
        return cls(name, StepStatus.SUCCEEDED, detail, data)

    @classmethod
    def skipped(cls, name: str, detail: str = "", **data) -> "StepResult":
        return cls(name, StepStatus.SKIPPED, detail, data)

    @classmethod
    def soft_failed(cls, name: str, detail: str = "", **data) -> "StepResult":
        return cls(name, StepStatus.SOFT_FAILED, detail, data)

    @classmethod
    def fatal(cls, name: str, detail: str = "", **data) -> "StepResult":
        return cls(name, StepStatus.FATAL, detail, data)

    @property
    def is_fatal(self) -> bool:
        return self.status == StepStatus.FATAL

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "status": self.status.value,
            "detail": self.detail,
            "data": _jsonable(self.data),
        }


@dataclass
class RunReport:
    """Everything one run did, in order."""
    project_name: str = ""
    output_name: str = ""
    steps: list[StepResult] = field(default_factory=list)
    local_files: list[Path] = field(default_factory=list)
    completion: Optional[CompletionOutcome] = None
    artifact_path: Optional[Path] = None
    started_at: str = field(default_factory=lambda: datetime.now().isoformat())
    finished_at: Optional[str] = None

    def add(self, result: StepResult) -> StepResult:
        self.steps.append(result)
        return result

    def step(self, name: str) -> Optional[StepResult]:
        """Most recent result for a step name."""
        for result in reversed(self.steps):
            if result.name == name:
                return result
        return None

    @property
    def aborted(self) -> bool:
        return any(r.is_fatal for r in self.steps)

    @property
    def exit_code(self) -> int:
        """1 on any fatal checkpoint, 0 otherwise (soft failures included)."""
        return 1 if self.aborted else 0

    def finish(self):
        self.finished_at = datetime.now().isoformat()

    def to_dict(self) -> dict:
        return {
            "project_name": self.project_name,
            "output_name": self.output_name,
            "steps": [r.to_dict() for r in self.steps],
            "local_files": [str(p) for p in self.local_files],
            "completion": self.completion.value if self.completion else None,
            "artifact_path": str(self.artifact_path) if self.artifact_path else None,
            "aborted": self.aborted,
            "exit_code": self.exit_code,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
        }

    def save(self, path: Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)
        return path
