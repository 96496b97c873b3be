import asyncio
import logging
import uuid
from typing import Awaitable, Callable, Iterable, List, Optional

from app.logging import PIPELINE_LOGGER
from app.settings import settings
from domain.errors import BATCH_LEVEL_ERRORS, BatchInProgressError, ValidationError
from domain.schemas import BatchReport, BatchStatusResponse, UploadItemView
from domain.services.analysis_gateway import AnalysisGateway
from domain.services.intake import ItemStatus, UploadItem, UploadQueue
from domain.services.job_context import JobContextResolver, JobSelection, ResolvedJob
from domain.services.persistence import ResultPersister

logger = logging.getLogger(PIPELINE_LOGGER)

Subscriber = Callable[[UploadItemView], None]
Sleep = Callable[[float], Awaitable[None]]


class ScoringScheduler:
    """Runs one batch of resumes through analysis, strictly one at a time.

    The provider enforces a requests-per-minute quota, so items are never
    analyzed concurrently and every processed item after the first waits
    ``delay_seconds`` first, whether or not the previous item failed.
    ``COMPLETED`` items are skipped, which makes re-running a batch the
    retry mechanism for items that ended in ``ERROR``.
    """

    def __init__(self,
                 resolver: Optional[JobContextResolver] = None,
                 gateway: Optional[AnalysisGateway] = None,
                 persister: Optional[ResultPersister] = None,
                 *,
                 queue: Optional[UploadQueue] = None,
                 delay_seconds: Optional[float] = None,
                 sleep: Sleep = asyncio.sleep,
                 batch_id: Optional[str] = None):
        self.id = batch_id or f"batch_{uuid.uuid4().hex}"
        self.queue = queue or UploadQueue()
        self._resolver = resolver or JobContextResolver()
        self._gateway = gateway or AnalysisGateway()
        self._persister = persister or ResultPersister()
        self._delay = settings.ANALYSIS_DELAY_SECONDS if delay_seconds is None else delay_seconds
        self._sleep = sleep
        self._subscribers: List[Subscriber] = []
        self._running = False
        self._cancel_requested = False
        self._task: Optional[asyncio.Task] = None
        self.last_error: Optional[str] = None
        self.batch_error: Optional[str] = None
        self.report: Optional[BatchReport] = None
        self.selection: Optional[JobSelection] = None

    @property
    def is_running(self) -> bool:
        return self._running

    # intake

    def add_files(self, files: Iterable) -> List[UploadItem]:
        added = self.queue.add_files(files)
        for item in added:
            self._notify(item)
        return added

    def remove_item(self, item_id: str) -> bool:
        return self.queue.remove_item(item_id)

    # observation

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def snapshot(self) -> BatchStatusResponse:
        return BatchStatusResponse(
            id=self.id,
            running=self._running,
            items=[item.view() for item in self.queue],
            last_error=self.last_error,
            batch_error=self.batch_error,
            report=self.report,
        )

    def _notify(self, item: UploadItem) -> None:
        view = item.view()
        for callback in list(self._subscribers):
            try:
                callback(view)
            except Exception:
                logger.exception("Subscriber failed for item %s", item.id)

    def _transition(self, item: UploadItem, status: ItemStatus, progress: int) -> None:
        item.transition(status, progress)
        self._notify(item)

    # control

    def cancel(self) -> bool:
        """Stop before the next item. The item in flight is left to finish."""
        if not self._running:
            return False
        self._cancel_requested = True
        logger.info("Cancellation requested for batch %s", self.id)
        return True

    def _begin(self, selection: JobSelection) -> None:
        if self._running:
            raise BatchInProgressError(f"batch {self.id} is already running")
        selection.validate()
        if len(self.queue) == 0:
            raise ValidationError("Please upload at least one resume.")
        self._running = True
        self.queue.locked = True
        self.selection = selection
        self._cancel_requested = False
        self.last_error = None
        self.batch_error = None
        self.report = None

    async def start_analysis(self, selection: JobSelection) -> BatchReport:
        self._begin(selection)
        return await self._run(selection)

    def launch(self, selection: JobSelection) -> asyncio.Task:
        """Validate and claim the batch now, run it as a background task."""
        self._begin(selection)
        self._task = asyncio.create_task(self._run_in_background(selection))
        return self._task

    async def _run_in_background(self, selection: JobSelection) -> Optional[BatchReport]:
        try:
            return await self._run(selection)
        except BATCH_LEVEL_ERRORS:
            return None
        except Exception:
            logger.exception("Batch %s crashed", self.id)
            return None

    async def _run(self, selection: JobSelection) -> BatchReport:
        try:
            logger.info("=== Starting batch %s (%d files) ===", self.id, len(self.queue))
            try:
                job = await self._resolver.resolve(selection)
            except Exception as exc:
                self.batch_error = f"Analysis failed: {exc}"
                logger.error("Batch %s aborted before scoring: %s", self.id, exc)
                raise
            logger.info("Using job context %r (job_id=%s, source=%s)",
                        job.context.title, job.job_id, job.source.value)

            report = BatchReport(job_id=job.job_id)
            processed = 0
            items = self.queue.items
            for index, item in enumerate(items, start=1):
                if item.status is ItemStatus.COMPLETED:
                    report.skipped.append(item.id)
                    continue
                if self._cancel_requested:
                    report.cancelled = True
                    break
                if processed > 0:
                    await self._sleep(self._delay)
                    if self._cancel_requested:
                        report.cancelled = True
                        break
                processed += 1
                logger.info("Processing file %d/%d: %s", index, len(items), item.name)
                await self._process(item, job, report)

            report.last_error = self.last_error
            self.report = report
            logger.info("=== Batch %s finished: %d completed, %d failed, %d skipped%s ===",
                        self.id, report.succeeded_count, report.failed_count,
                        len(report.skipped), " (cancelled)" if report.cancelled else "")
            return report
        finally:
            self._running = False
            self.queue.locked = False

    async def _process(self, item: UploadItem, job: ResolvedJob, report: BatchReport) -> None:
        try:
            self._transition(item, ItemStatus.READING, 10)
            document = await item.document.read()

            self._transition(item, ItemStatus.PARSING, 30)
            result = await self._gateway.analyze(document, job.context)
            item.set_progress(80)
            self._notify(item)

            item.candidate_id = self._persister.persist(item, document, result, job)
            item.result = result
            self._transition(item, ItemStatus.COMPLETED, 100)
            report.completed.append(item.id)
        except asyncio.CancelledError:
            # the task was cancelled mid-item; leave it retryable, not stuck in flight
            logger.warning("Batch %s cancelled while processing %s", self.id, item.name)
            item.error = "Analysis cancelled"
            self._transition(item, ItemStatus.ERROR, 0)
            self.last_error = f"Failed to analyze {item.name}: {item.error}"
            report.failed.append(item.id)
            raise
        except Exception as exc:
            logger.exception("Error processing %s", item.name)
            item.error = str(exc) or exc.__class__.__name__
            self._transition(item, ItemStatus.ERROR, 0)
            self.last_error = f"Failed to analyze {item.name}: {item.error}"
            report.failed.append(item.id)
