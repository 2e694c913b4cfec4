"""
Import Job Service - Start and observe the UKE import job.

At most one import job runs at a time. Starting a job seeds a fresh record,
persists it and hands the pipeline to a detached background task; callers
follow progress only by polling the persisted record.
"""

import asyncio
import logging
from datetime import datetime
from functools import lru_cache
from typing import Callable, Optional, Set, Tuple

from redis.exceptions import LockError

from backend.models.job import ImportOptions, JobRecord, JobState, StageStatus
from services.import_orchestrator import ImportOrchestrator
from services.job_state_store import JobStateStore
from services.reconciliation_service import associate_stations_with_permits, prune_stations_permits
from services.step_ledger import utc_now
from services.storage_service import cleanup_downloads
from services.worker_dispatcher import get_worker_dispatcher

logger = logging.getLogger(__name__)

INTERRUPTED_ERROR = "Import job interrupted by service restart"


class ImportJobController:
    """Single-flight entry point for the import pipeline."""

    def __init__(
        self,
        store: JobStateStore,
        orchestrator: ImportOrchestrator,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.store = store
        self.orchestrator = orchestrator
        self.clock = clock or utc_now
        # Strong references so the event loop does not drop running pipelines
        self._background: Set[asyncio.Task] = set()

    def get_import_job_status(self) -> JobRecord:
        """Return a copy of the current job record."""
        return self.store.load().model_copy(deep=True)

    async def start_import_job(self, options: Optional[ImportOptions] = None) -> JobRecord:
        """
        Start an import job unless one is already running.

        Admission runs in a worker thread because the Redis lock waits with
        blocking sleeps.

        Args:
            options: Which ingestion stages to run (default: all)

        Returns:
            The freshly seeded record, or the current record when a job is
            already running or the admission lock could not be acquired
        """
        options = options or ImportOptions()

        job, admitted = await asyncio.to_thread(self._admit)
        if not admitted:
            return job

        snapshot = job.model_copy(deep=True)
        self._spawn(job, options)
        logger.info("Import job scheduled")
        return snapshot

    def _admit(self) -> Tuple[JobRecord, bool]:
        try:
            with self.store.admission_lock():
                current = self.store.load()
                if current.is_running():
                    logger.info("Import job already running, returning current status")
                    return current, False

                job = JobRecord.seed(self.clock())
                self.store.save(job)
                return job, True
        except LockError as e:
            logger.warning(f"Import job admission lock busy, returning current status: {e}")
            return self.store.load(), False

    def _spawn(self, job: JobRecord, options: ImportOptions) -> None:
        task = asyncio.get_running_loop().create_task(
            self.orchestrator.run(job, options),
            name='uke-import-job'
        )
        self._background.add(task)
        task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if task.cancelled():
            logger.warning("Import job task was cancelled")
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Import job task crashed", exc_info=exc)

    def has_background_jobs(self) -> bool:
        """True while a pipeline started by this controller is still running."""
        return bool(self._background)

    async def wait_for_background_jobs(self) -> None:
        """Wait until every pipeline started by this controller has finished."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    def recover_interrupted_job(self) -> bool:
        """
        Close a job left 'running' by a process that died mid-run.

        Must only be called before this process starts any job.

        Returns:
            True if a stale record was found and marked as failed
        """
        job = self.store.load()
        if not job.is_running():
            return False

        now = self.clock()
        for stage in job.steps:
            if not stage.is_terminal():
                stage.status = StageStatus.ERROR
                stage.finished_at = now
        job.state = JobState.ERROR
        job.error = INTERRUPTED_ERROR
        job.finished_at = now
        self.store.save(job)

        logger.warning("Marked interrupted import job as failed")
        return True


def build_import_job_controller(store: Optional[JobStateStore] = None) -> ImportJobController:
    """Wire a controller with the configured dispatcher and collaborators."""
    store = store or JobStateStore()
    orchestrator = ImportOrchestrator(
        store=store,
        dispatcher=get_worker_dispatcher(),
        prune_associations=prune_stations_permits,
        associate=associate_stations_with_permits,
        cleanup=cleanup_downloads,
    )
    return ImportJobController(store, orchestrator)


@lru_cache()
def get_import_job_controller() -> ImportJobController:
    """Get the process-wide controller."""
    return build_import_job_controller()
