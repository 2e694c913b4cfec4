"""
Import Orchestrator - Runs the UKE import pipeline for one job.

Stages run strictly in order:

1. stations, radiolines, permits: ingestion in isolated workers, each
   skipped when disabled by the job options
2. prune_associations, associate: reconciliation, only when stations or
   permits changed
3. cleanup: always, even after a failure

The job record is saved after every stage transition so status polling
observes live progress. A stage that changed data ends 'success'; an
ingestion stage that found nothing new ends 'skipped'.
"""

import asyncio
import inspect
import logging
from datetime import datetime
from typing import Callable, Dict, Optional

import redis

from backend.models.job import (
    INGESTION_STAGES, STAGE_TASK_NAMES, ImportOptions, JobRecord, JobState, StageId
)
from services.job_state_store import JobStateStore
from services.step_ledger import StepLedger, utc_now
from services.worker_dispatcher import WorkerDispatcher

logger = logging.getLogger(__name__)

Collaborator = Callable[[], object]


async def _call(fn: Collaborator) -> object:
    """Await coroutine functions; run blocking ones in a thread."""
    if inspect.iscoroutinefunction(fn):
        return await fn()
    return await asyncio.to_thread(fn)


class ImportOrchestrator:
    """
    State machine driving the six-stage import pipeline.

    The orchestrator is the only writer of the job record while a run is
    in progress.
    """

    def __init__(
        self,
        store: JobStateStore,
        dispatcher: WorkerDispatcher,
        prune_associations: Collaborator,
        associate: Collaborator,
        cleanup: Collaborator,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize orchestrator.

        Args:
            store: Job record persistence
            dispatcher: Runs ingestion tasks in isolated workers
            prune_associations: Removes stale station-permit links
            associate: Recomputes station-permit links
            cleanup: Removes downloaded files
            clock: Returns the current UTC time (default: datetime.now(timezone.utc))
        """
        self.store = store
        self.dispatcher = dispatcher
        self.prune_associations = prune_associations
        self.associate = associate
        self.cleanup = cleanup
        self.clock = clock or utc_now

    async def run(self, job: JobRecord, options: Optional[ImportOptions] = None) -> None:
        """
        Run the pipeline to completion for an already seeded job.

        Stage failures never escape: they end up in job.state and job.error.
        Only a failure to persist the record propagates.
        """
        options = options or ImportOptions()
        ledger = StepLedger(job, clock=self.clock)
        logger.info(
            f"UKE import job started (stations={options.import_stations}, "
            f"radiolines={options.import_radiolines}, permits={options.import_permits})"
        )

        try:
            try:
                changed = await self._run_ingestion(job, ledger, options)

                # Radio links are not associated with permits
                if changed[StageId.STATIONS] or changed[StageId.PERMITS]:
                    await self._run_stage(job, ledger, StageId.PRUNE_ASSOCIATIONS, self.prune_associations)
                    await self._run_stage(job, ledger, StageId.ASSOCIATE, self.associate)
                else:
                    logger.info("No station or permit changes, skipping reconciliation")
                    ledger.mark_skipped(StageId.PRUNE_ASSOCIATIONS)
                    ledger.mark_skipped(StageId.ASSOCIATE)
                    self._persist(job)

                job.state = JobState.SUCCESS
                logger.info("UKE import job completed successfully")
            except Exception as e:
                job.state = JobState.ERROR
                job.error = str(e) or type(e).__name__
                logger.error(f"UKE import job failed: {job.error}")

            job.finished_at = self.clock()
            self._persist(job)
        finally:
            await self._run_cleanup(job, ledger)

    async def _run_ingestion(self, job: JobRecord, ledger: StepLedger,
                             options: ImportOptions) -> Dict[StageId, bool]:
        changed = {}
        for stage_id in INGESTION_STAGES:
            if not options.is_enabled(stage_id):
                logger.info(f"Stage {stage_id.value} disabled, skipping")
                ledger.mark_skipped(stage_id)
                self._persist(job)
                changed[stage_id] = False
                continue

            ledger.mark_running(stage_id)
            self._persist(job)

            try:
                stage_changed = await self.dispatcher.run(STAGE_TASK_NAMES[stage_id])
            except Exception as e:
                ledger.mark_error(stage_id)
                self._persist(job)
                logger.error(f"Stage {stage_id.value} failed: {e}")
                raise

            if stage_changed:
                ledger.mark_success(stage_id)
            else:
                ledger.mark_skipped(stage_id)
            self._persist(job)
            logger.info(f"Stage {stage_id.value} finished: changed={stage_changed}")
            changed[stage_id] = stage_changed
        return changed

    async def _run_stage(self, job: JobRecord, ledger: StepLedger,
                         stage_id: StageId, fn: Collaborator) -> None:
        ledger.mark_running(stage_id)
        self._persist(job)

        try:
            await _call(fn)
        except Exception as e:
            ledger.mark_error(stage_id)
            self._persist(job)
            logger.error(f"Stage {stage_id.value} failed: {e}")
            raise

        ledger.mark_success(stage_id)
        self._persist(job)
        logger.info(f"Stage {stage_id.value} finished")

    async def _run_cleanup(self, job: JobRecord, ledger: StepLedger) -> None:
        # Cleanup errors stay on the cleanup stage; job.state and job.error are final
        ledger.mark_running(StageId.CLEANUP)
        self._persist_cleanup(job)

        try:
            await _call(self.cleanup)
        except Exception as e:
            ledger.mark_error(StageId.CLEANUP)
            logger.error(f"Failed to cleanup downloads: {e}")
        else:
            ledger.mark_success(StageId.CLEANUP)
        self._persist_cleanup(job)

    def _persist_cleanup(self, job: JobRecord) -> None:
        # A lost status write must not stop downloads from being removed
        try:
            self._persist(job)
        except redis.RedisError as e:
            logger.error(f"Could not save cleanup progress: {e}")

    def _persist(self, job: JobRecord) -> None:
        self.store.save(job)
