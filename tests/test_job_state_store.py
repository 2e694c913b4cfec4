"""
Tests for the Redis-backed job record store.
"""

import json

import pytest
from redis.exceptions import LockError

from backend.models.job import JobRecord, JobState, StageId, StageStatus
from services.job_state_store import JobStateStore
from services.step_ledger import StepLedger, utc_now
from tests.doubles import ContendedRedis, StubLock


class TestLoad:

    def test_absent_record_is_idle(self, store):
        job = store.load()

        assert job.state == JobState.IDLE
        assert job.steps == []
        assert job.started_at is None

    def test_unreadable_record_is_idle(self, store, redis_client, caplog):
        redis_client.data['test:job'] = '{"state": "exploded"}'

        job = store.load()

        assert job.state == JobState.IDLE
        assert 'Discarding unreadable job record' in caplog.text


class TestSave:

    def test_round_trip(self, store):
        job = JobRecord.seed(utc_now())
        StepLedger(job).mark_success(StageId.STATIONS)

        store.save(job)

        assert store.load() == job

    def test_wire_shape_is_camel_case(self, store, redis_client):
        job = JobRecord.seed(utc_now())
        StepLedger(job).mark_running(StageId.STATIONS)

        store.save(job)

        stored = json.loads(redis_client.data['test:job'])
        assert stored['state'] == 'running'
        assert 'startedAt' in stored
        assert 'finishedAt' not in stored
        assert 'error' not in stored
        assert stored['steps'][0] == {
            'id': 'stations',
            'status': 'running',
            'startedAt': stored['steps'][0]['startedAt'],
        }

    def test_save_overwrites(self, store):
        first = JobRecord.seed(utc_now())
        first.state = JobState.ERROR
        first.error = 'boom'
        store.save(first)

        store.save(JobRecord.seed(utc_now()))

        job = store.load()
        assert job.state == JobState.RUNNING
        assert job.error is None
        assert all(stage.status == StageStatus.PENDING for stage in job.steps)


class TestAdmissionLock:

    def test_lock_is_taken_and_released(self, store, redis_client):
        with store.admission_lock():
            assert redis_client._lock.locked()

        assert not redis_client._lock.locked()
        assert redis_client.locks_taken == 1

    def test_busy_lock_raises(self):
        store = JobStateStore(redis_client=ContendedRedis(StubLock(acquired=False)), key='test:job')

        with pytest.raises(LockError):
            with store.admission_lock():
                pytest.fail('entered without the lock')

    def test_late_release_is_logged(self, caplog):
        stub = StubLock(release_error=LockError('no longer owned'))
        store = JobStateStore(redis_client=ContendedRedis(stub), key='test:job')

        with store.admission_lock():
            store.save(JobRecord.seed(utc_now()))

        assert stub.released
        assert store.load().state == JobState.RUNNING
        assert 'released late' in caplog.text
