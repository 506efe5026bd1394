"""
CapCut render agent: the fixed interaction sequence.

login -> create project -> template -> upload -> timeline -> captions ->
effects (no-op) -> export -> wait for completion and download.

Every step returns a StepResult. Only upload_assets can be FATAL here;
everything else is best-effort and the sequence keeps going.
"""

import logging
from pathlib import Path
from typing import Awaitable, Callable, Optional
from urllib.parse import urljoin, urlparse

from agents.element_locator import ElementLocator
from core.config import (
    CAPTION_TYPE_DELAY,
    COMPLETION_TIMEOUT,
    CREDENTIAL_TYPE_DELAY,
    LOGIN_BUTTON_TIMEOUT,
    LOGIN_NAVIGATION_TIMEOUT,
    MAX_CAPTIONS,
    MAX_TIMELINE_CLIPS,
    PAUSE_AFTER_ADD_TEXT,
    PAUSE_AFTER_CAPTION,
    PAUSE_AFTER_LOGIN_CLICK,
    PAUSE_AFTER_NEW_PROJECT,
    PAUSE_AFTER_TEMPLATE,
    PAUSE_AFTER_TEXT_PANEL,
    PAUSE_AFTER_THUMB_CLICK,
    PAUSE_AFTER_UPLOAD_TRIGGER,
    PAUSE_BEFORE_NEW_PROJECT,
    THUMB_CLICK_DELAY,
    THUMBNAIL_TIMEOUT,
    Settings,
)
from core.job import Job
from core.run_report import CompletionOutcome, RunReport, StepResult
from tools.asset_fetcher import AssetDownloadError, AssetFetcher

logger = logging.getLogger(__name__)

# Elements that can plausibly be a template card in the template gallery
TEMPLATE_CARD_TAG = "*[self::button or self::a or @role='button' or @role='option']"

# The artifact is fetched over plain HTTP; blob:, javascript: etc. are unusable
DOWNLOAD_SCHEMES = ("http", "https")


class CapCutRenderAgent:
    """Runs one job's UI steps against an open editor page."""

    def __init__(
        self,
        page,
        locator: ElementLocator,
        fetcher: AssetFetcher,
        settings: Settings,
        screenshot: Optional[Callable[[str], Awaitable]] = None,
    ):
        self.page = page
        self.locator = locator
        self.fetcher = fetcher
        self.settings = settings
        self._screenshot = screenshot

    async def _pause(self, ms: int):
        await self.page.wait_for_timeout(ms)

    async def _capture(self, name: str):
        if self._screenshot:
            await self._screenshot(name)

    async def run(self, job: Job, local_files: list[Path], report: RunReport = None) -> RunReport:
        """Run every step in order; stop at the first fatal one."""
        if report is None:
            report = RunReport(project_name=job.project_name, output_name=job.output_name)

        steps = [
            self.login,
            self.create_project,
            lambda: self.select_template(job),
            lambda: self.upload_assets(local_files),
            self.populate_timeline,
            lambda: self.insert_captions(job),
            lambda: self.apply_effects(job),
            self.trigger_export,
        ]
        for step in steps:
            result = report.add(await step())
            if result.is_fatal:
                logger.error(f"Aborting run: {result.name} failed: {result.detail}")
                return report

        result = report.add(await self.await_completion(job))
        report.completion = result.data.get("outcome")
        if report.completion == CompletionOutcome.READY:
            report.artifact_path = result.data.get("artifact_path")
        return report

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def login(self) -> StepResult:
        """Click the login control if present, then email-login if possible."""
        name = "login"
        try:
            login_btn = await self.locator.wait_for("login_button", LOGIN_BUTTON_TIMEOUT)
            if login_btn:
                await login_btn.click()
                await self._pause(PAUSE_AFTER_LOGIN_CLICK)
            else:
                logger.warning("Login button not found; continuing if already logged in.")

            email_input = await self.locator.find("email_input")
            if not email_input or not self.settings.has_credentials:
                logger.info(
                    "Email login not available or credentials missing; "
                    "assuming an active session."
                )
                return StepResult.skipped(name, "email login not performed")

            logger.info("Performing email login...")
            await email_input.type(self.settings.email, delay=CREDENTIAL_TYPE_DELAY)
            password_input = await self.locator.find("password_input")
            if password_input:
                await password_input.type(self.settings.password, delay=CREDENTIAL_TYPE_DELAY)

            submit = await self.locator.find("login_submit")
            if submit:
                await submit.click()
            await self.page.wait_for_load_state("networkidle", timeout=LOGIN_NAVIGATION_TIMEOUT)
            logger.info("Login done.")
            return StepResult.succeeded(name, "logged in with email")

        except Exception as e:
            logger.warning(f"Login attempt failed; continuing. ({e})")
            return StepResult.soft_failed(name, str(e))

    async def create_project(self) -> StepResult:
        name = "create_project"
        try:
            await self._pause(PAUSE_BEFORE_NEW_PROJECT)
            new_btn = await self.locator.find("new_project")
            if not new_btn:
                logger.info("New Project button not found; continuing in the current workspace.")
                return StepResult.skipped(name, "new project control not found")

            await new_btn.click()
            await self._pause(PAUSE_AFTER_NEW_PROJECT)
            logger.info("Created new project.")
            return StepResult.succeeded(name)

        except Exception as e:
            logger.warning(f"Create project step failed: {e}")
            return StepResult.soft_failed(name, str(e))

    async def select_template(self, job: Job) -> StepResult:
        name = "select_template"
        if not job.template:
            return StepResult.skipped(name, "no template requested")

        try:
            card = await self.locator.find_by_text([job.template], tag=TEMPLATE_CARD_TAG)
            if not card:
                logger.warning(f"Template '{job.template}' not found; using a blank project.")
                return StepResult.skipped(name, f"template {job.template} not found")

            await card.click()
            await self._pause(PAUSE_AFTER_TEMPLATE)
            logger.info(f"Selected template: {job.template}")
            return StepResult.succeeded(name, job.template)

        except Exception as e:
            logger.warning(f"Template selection failed: {e}")
            return StepResult.soft_failed(name, str(e))

    async def upload_assets(self, local_files: list[Path]) -> StepResult:
        """Attach every staged file to the editor's file input. Fatal on failure."""
        name = "upload_assets"
        try:
            file_input = await self.locator.find("file_input")
            if not file_input:
                upload_btn = await self.locator.find("upload_trigger")
                if upload_btn:
                    await upload_btn.click()
                    await self._pause(PAUSE_AFTER_UPLOAD_TRIGGER)
                file_input = await self.locator.find("file_input")

            if not file_input:
                await self._capture("upload_input_missing")
                logger.error(
                    "Unable to find file input element on page. "
                    "Inspect CapCut and update the file_input selector."
                )
                return StepResult.fatal(name, "file input not found")

            await file_input.set_input_files([str(p) for p in local_files])
            logger.info(f"Uploaded {len(local_files)} local file(s) to CapCut UI.")
            return StepResult.succeeded(name, files=len(local_files))

        except Exception as e:
            logger.error(f"Upload step failed: {e}")
            return StepResult.fatal(name, str(e))

    async def populate_timeline(self) -> StepResult:
        """Click uploaded media thumbnails to drop them on the timeline."""
        name = "populate_timeline"
        try:
            first = await self.locator.wait_for("media_thumbnail", THUMBNAIL_TIMEOUT)
            if not first:
                logger.warning("Uploaded media never rendered as thumbnails.")
                await self._capture("thumbnails_missing")
                return StepResult.soft_failed(name, "thumbnails did not appear")

            thumbs = await self.locator.find_all("media_thumbnail")
            logger.info(f"Found thumbnails: {len(thumbs)}")

            clicked = 0
            for i, thumb in enumerate(thumbs[:MAX_TIMELINE_CLIPS]):
                try:
                    await thumb.click(delay=THUMB_CLICK_DELAY)
                    await self._pause(PAUSE_AFTER_THUMB_CLICK)
                    clicked += 1
                except Exception as e:
                    logger.debug(f"Thumbnail {i} click failed: {e}")

            return StepResult.succeeded(name, found=len(thumbs), clicked=clicked)

        except Exception as e:
            logger.warning(f"Timeline population step had issues: {e}")
            return StepResult.soft_failed(name, str(e))

    async def insert_captions(self, job: Job) -> StepResult:
        """Add one text box per caption, up to MAX_CAPTIONS."""
        name = "insert_captions"
        if not job.captions:
            return StepResult.skipped(name, "no captions in job")

        try:
            text_btn = await self.locator.find("text_panel")
            if text_btn:
                await text_btn.click()
                await self._pause(PAUSE_AFTER_TEXT_PANEL)
        except Exception as e:
            logger.warning(f"Could not open text panel: {e}")

        try:
            add_text_btn = await self.locator.find("add_text")
        except Exception as e:
            logger.warning(f"Caption insertion failed: {e}")
            return StepResult.soft_failed(name, str(e), attempts=0, inserted=0)

        if not add_text_btn:
            logger.warning("Add text button not found; captions not inserted.")
            return StepResult.soft_failed(name, "add text control not found", attempts=0, inserted=0)

        attempts = 0
        inserted = 0
        for i, caption in enumerate(job.captions[:MAX_CAPTIONS]):
            attempts += 1
            try:
                await add_text_btn.click()
                await self._pause(PAUSE_AFTER_ADD_TEXT)
                active_input = await self.locator.find("text_entry")
                if not active_input:
                    logger.warning(f"No active text input for caption {i}")
                    continue
                await active_input.focus()
                await self.page.keyboard.type(caption.text, delay=CAPTION_TYPE_DELAY)
                await self._pause(PAUSE_AFTER_CAPTION)
                inserted += 1
            except Exception as e:
                logger.warning(f"Add text failed for caption {i}: {e}")

        if len(job.captions) > MAX_CAPTIONS:
            logger.info(f"Caption script has {len(job.captions)} entries; only {MAX_CAPTIONS} placed.")

        detail = f"{inserted}/{attempts} captions inserted"
        if inserted == 0:
            return StepResult.soft_failed(name, detail, attempts=attempts, inserted=inserted)
        return StepResult.succeeded(name, detail, attempts=attempts, inserted=inserted)

    async def apply_effects(self, job: Job) -> StepResult:
        # SFX/music placement is not automated; names are carried but unused.
        if job.sfx:
            logger.info(f"Skipping SFX placement (not automated): {', '.join(job.sfx)}")
        return StepResult.skipped("apply_effects", "sfx placement not automated", sfx=list(job.sfx))

    async def trigger_export(self) -> StepResult:
        name = "trigger_export"
        try:
            export_btn = await self.locator.find("export_button")
            if not export_btn:
                logger.warning("Export button not found; manual export or a selector update may be needed.")
                return StepResult.skipped(name, "export control not found")

            await export_btn.click()
            logger.info("Clicked Export.")
            return StepResult.succeeded(name)

        except Exception as e:
            logger.warning(f"Export step failed: {e}")
            return StepResult.soft_failed(name, str(e))

    async def await_completion(self, job: Job) -> StepResult:
        """
        Wait once (bounded) for the download link, then fetch the render.

        Timeout, a link with no URL, and a failed download are reported
        as distinct outcomes; none of them aborts the run.
        """
        name = "await_completion"
        output_path = self.settings.output_dir / job.output_name

        try:
            download_el = await self.locator.wait_for(
                "completion_indicator", COMPLETION_TIMEOUT, state="attached"
            )
        except Exception as e:
            logger.warning(f"Waiting for the completion indicator failed: {e}")
            await self._capture("export_wait_error")
            return StepResult.soft_failed(name, f"completion wait failed: {e}", outcome=None)

        if not download_el:
            logger.warning(
                f"Export did not complete within {COMPLETION_TIMEOUT // 1000}s "
                "(timeout or selector mismatch)."
            )
            await self._capture("export_timeout")
            return StepResult.soft_failed(name, "completion indicator did not appear", outcome=CompletionOutcome.TIMED_OUT)

        try:
            reference = (
                await download_el.get_attribute("href")
                or await download_el.get_attribute("data-url")
            )
            download_url = urljoin(self.page.url, reference) if reference else None
        except Exception as e:
            logger.warning(f"Could not read download reference: {e}")
            download_url = None

        if not download_url or urlparse(download_url).scheme not in DOWNLOAD_SCHEMES:
            logger.warning(f"Download element found but could not extract a usable URL ({download_url!r}).")
            await self._capture("export_no_reference")
            return StepResult.soft_failed(
                name, "no usable download reference on indicator",
                outcome=CompletionOutcome.NO_REFERENCE,
                reference=download_url,
            )

        logger.info(f"Export ready at {download_url}")

        try:
            saved = await self.fetcher.fetch_artifact(download_url, output_path)
        except (AssetDownloadError, OSError, ValueError) as e:
            logger.warning(f"Export download failed: {e}")
            return StepResult.soft_failed(
                name, str(e),
                outcome=CompletionOutcome.DOWNLOAD_FAILED,
                download_url=download_url,
            )

        return StepResult.succeeded(
            name, f"saved {saved.name}",
            outcome=CompletionOutcome.READY,
            download_url=download_url,
            artifact_path=saved,
        )
