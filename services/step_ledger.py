"""
Step Ledger - Stage status transitions on an in-memory job record.

Nothing here persists; callers save the record after each mutation.
"""

from datetime import datetime, timezone
from typing import Callable, Optional

from backend.models.job import JobRecord, Stage, StageId, StageStatus
from services.exceptions import UnknownStageError


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class StepLedger:
    """Records stage transitions on a loaded job record."""

    def __init__(self, job: JobRecord, clock: Optional[Callable[[], datetime]] = None):
        self.job = job
        self.clock = clock or utc_now

    def _stage(self, stage_id: StageId) -> Stage:
        try:
            stage = self.job.step(StageId(stage_id))
        except ValueError:
            stage = None
        if stage is None:
            raise UnknownStageError(f"Unknown stage: {stage_id}")
        return stage

    def mark_running(self, stage_id: StageId) -> Stage:
        stage = self._stage(stage_id)
        stage.status = StageStatus.RUNNING
        stage.started_at = self.clock()
        return stage

    def mark_success(self, stage_id: StageId) -> Stage:
        return self._finish(stage_id, StageStatus.SUCCESS)

    def mark_skipped(self, stage_id: StageId) -> Stage:
        return self._finish(stage_id, StageStatus.SKIPPED)

    def mark_error(self, stage_id: StageId) -> Stage:
        return self._finish(stage_id, StageStatus.ERROR)

    def _finish(self, stage_id: StageId, status: StageStatus) -> Stage:
        stage = self._stage(stage_id)
        stage.status = status
        stage.finished_at = self.clock()
        return stage
