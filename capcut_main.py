"""
CapCut Render Runner: Entry Point

Drives the CapCut web editor from a repository_dispatch payload: downloads
the job's assets, uploads them, lays out clips and captions, exports, and
saves the rendered video.

Usage:
    python capcut_main.py                          # Payload from $GITHUB_EVENT_PATH
    python capcut_main.py --payload job.json       # Local payload file (bare or event-wrapped)
    python capcut_main.py --visible                # Visible browser (debugging selectors)
    python capcut_main.py --selectors sel.yaml     # Override editor selectors

Environment:
    Reads .env if present:
    - CAPCUT_EMAIL / CAPCUT_PASSWORD (optional; without them an existing session is assumed)
    - CHROME_EXEC (default /usr/bin/google-chrome-stable)
    - GITHUB_EVENT_PATH (set by GitHub Actions)

Exit status is 1 only when a fatal checkpoint fails (bad payload, asset
download, browser/editor bootstrap, or no upload control); every other
problem is logged and the run exits 0.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from agents.capcut_agent import CapCutRenderAgent
from agents.capcut_browser import CapCutBrowser
from agents.capcut_selectors import load_selectors
from agents.element_locator import ElementLocator
from core.config import Settings
from core.job import Job, JobError, load_trigger_payload
from core.run_report import RunReport, StepResult
from tools.asset_fetcher import AssetDownloadError, AssetFetcher

logger = logging.getLogger("capcut")

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"


def setup_logging(log_dir: Path = None, level: int = logging.INFO):
    handlers = [logging.StreamHandler()]
    if log_dir is not None:
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(log_dir / "capcut_render.log", encoding="utf-8"))
        except OSError as e:
            print(f"Log file unavailable ({e}); logging to console only", file=sys.stderr)
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)


class CapCutRenderSystem:
    """
    One render run, end to end.

    Fatal checkpoints (asset download, browser bootstrap, upload control)
    end the run with a FATAL step result; the browser is always closed.
    """

    def __init__(self, settings: Settings, browser_factory=CapCutBrowser, fetcher: AssetFetcher = None):
        self.settings = settings
        self.browser_factory = browser_factory
        self.fetcher = fetcher or AssetFetcher()
        self.selectors = load_selectors(settings.selectors_file)

    async def run(self, job: Job) -> RunReport:
        report = RunReport(project_name=job.project_name, output_name=job.output_name)
        logger.info("=" * 60)
        logger.info(f"CAPCUT RENDER: {job.project_name} -> {job.output_name}")
        logger.info("=" * 60)

        # 1) Assets: before any browser exists
        try:
            report.local_files = await self.fetcher.fetch_assets(job.asset_urls, self.settings.asset_dir)
        except AssetDownloadError as e:
            logger.error(f"Failed to download asset {e.url}: {e}")
            report.add(StepResult.fatal("fetch_assets", str(e), url=e.url, status_code=e.status_code))
            report.finish()
            return report
        report.add(StepResult.succeeded("fetch_assets", files=len(report.local_files)))

        # 2) Browser + editor
        browser = self.browser_factory(self.settings)
        try:
            if not await browser.start():
                report.add(StepResult.fatal("open_editor", "browser failed to start"))
                return report
            if not await browser.open_editor():
                await browser.take_screenshot("open_editor_failed")
                report.add(StepResult.fatal("open_editor", "editor navigation failed"))
                return report
            report.add(StepResult.succeeded("open_editor"))

            # 3) UI steps
            agent = CapCutRenderAgent(
                page=browser.page,
                locator=ElementLocator(browser.page, self.selectors),
                fetcher=self.fetcher,
                settings=self.settings,
                screenshot=browser.take_screenshot,
            )
            await agent.run(job, report.local_files, report)
            return report
        finally:
            await browser.stop()
            report.finish()
            self._log_summary(report)

    @staticmethod
    def _log_summary(report: RunReport):
        for step in report.steps:
            logger.info(f"  {step.name:<18} {step.status.value:<12} {step.detail}")
        if report.artifact_path:
            logger.info(f"Done. Output: {report.artifact_path}")
        elif not report.aborted:
            logger.warning("Run finished without an output artifact.")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="CapCut Render Runner: drive the CapCut web editor from a dispatch payload"
    )
    parser.add_argument(
        "--payload", type=Path, default=None,
        help="Path to the trigger payload (defaults to $GITHUB_EVENT_PATH)",
    )
    parser.add_argument(
        "--visible", action="store_true",
        help="Run browser in visible mode (for debugging selectors)",
    )
    parser.add_argument(
        "--output-dir", type=Path, default=None,
        help="Directory for the rendered video and run report (default /tmp)",
    )
    parser.add_argument(
        "--selectors", type=Path, default=None,
        help="YAML file with editor selector overrides",
    )
    return parser.parse_args(argv)


def build_settings(args) -> Settings:
    settings = Settings.from_env()
    if args.payload:
        settings.event_path = args.payload
    if args.visible:
        settings.headless = False
    if args.output_dir:
        settings.output_dir = args.output_dir
    if args.selectors:
        settings.selectors_file = args.selectors
    return settings


def main(argv=None, browser_factory=CapCutBrowser, fetcher: AssetFetcher = None) -> int:
    """Run one job. Returns the process exit code."""
    load_dotenv()
    args = parse_args(argv)
    settings = build_settings(args)
    setup_logging(settings.output_dir)

    try:
        job = Job.from_payload(load_trigger_payload(settings.event_path))
    except JobError as e:
        logger.error(str(e))
        return 1

    try:
        system = CapCutRenderSystem(settings, browser_factory=browser_factory, fetcher=fetcher)
    except (OSError, ValueError) as e:
        logger.error(f"Invalid selector configuration: {e}")
        return 1

    report = asyncio.run(system.run(job))

    report_path = settings.output_dir / f"{Path(job.output_name).stem}_report.json"
    try:
        report.save(report_path)
        logger.info(f"Run report written to {report_path}")
    except OSError as e:
        logger.warning(f"Could not write run report: {e}")

    return report.exit_code


if __name__ == "__main__":
    sys.exit(main())
