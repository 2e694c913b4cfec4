"""
Tests for stage status transitions.
"""

from datetime import datetime, timedelta, timezone

import pytest

from backend.models.job import STAGE_ORDER, JobRecord, JobState, StageId, StageStatus
from services.exceptions import UnknownStageError
from services.step_ledger import StepLedger


class FakeClock:

    def __init__(self):
        self.now = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def job(clock):
    return JobRecord.seed(clock())


class TestSeed:

    def test_seed_has_all_stages_pending(self, job):
        assert job.state == JobState.RUNNING
        assert [stage.id for stage in job.steps] == STAGE_ORDER
        assert all(stage.status == StageStatus.PENDING for stage in job.steps)
        assert job.finished_at is None
        assert job.error is None


class TestTransitions:

    def test_running_sets_started_at(self, job, clock):
        stage = StepLedger(job, clock=clock).mark_running(StageId.STATIONS)

        assert stage.status == StageStatus.RUNNING
        assert stage.started_at is not None
        assert stage.finished_at is None

    @pytest.mark.parametrize('method, status', [
        ('mark_success', StageStatus.SUCCESS),
        ('mark_skipped', StageStatus.SKIPPED),
        ('mark_error', StageStatus.ERROR),
    ])
    def test_terminal_sets_finished_at(self, job, clock, method, status):
        ledger = StepLedger(job, clock=clock)
        ledger.mark_running(StageId.RADIOLINES)

        stage = getattr(ledger, method)(StageId.RADIOLINES)

        assert stage.status == status
        assert stage.finished_at > stage.started_at
        assert stage.is_terminal()

    def test_skip_without_running(self, job, clock):
        stage = StepLedger(job, clock=clock).mark_skipped(StageId.PERMITS)

        assert stage.started_at is None
        assert stage.finished_at is not None

    def test_only_target_stage_changes(self, job, clock):
        StepLedger(job, clock=clock).mark_success(StageId.ASSOCIATE)

        others = [stage for stage in job.steps if stage.id != StageId.ASSOCIATE]
        assert all(stage.status == StageStatus.PENDING for stage in others)

    def test_accepts_plain_string_ids(self, job, clock):
        stage = StepLedger(job, clock=clock).mark_running('prune_associations')

        assert stage.id == StageId.PRUNE_ASSOCIATIONS


class TestUnknownStage:

    def test_unknown_id_raises(self, job):
        with pytest.raises(UnknownStageError):
            StepLedger(job).mark_running('geocode')

    def test_stage_missing_from_record_raises(self):
        with pytest.raises(UnknownStageError):
            StepLedger(JobRecord()).mark_success(StageId.CLEANUP)
