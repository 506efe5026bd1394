"""Job model, settings, and run reporting for the CapCut render runner."""

from core.config import Settings
from core.job import Caption, Job, JobError, load_trigger_payload, parse_caption_script
from core.run_report import CompletionOutcome, RunReport, StepResult, StepStatus

__all__ = [
    "Settings",
    "Caption", "Job", "JobError", "load_trigger_payload", "parse_caption_script",
    "CompletionOutcome", "RunReport", "StepResult", "StepStatus",
]
