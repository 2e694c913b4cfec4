"""
Job State Store - Durable persistence of the import job record.

The whole job record is stored as one JSON value under a single well-known
Redis key. A Redis SET replaces the value atomically, so readers always see
either the previous or the new record.
"""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

import redis
from pydantic import ValidationError
from redis.exceptions import LockError

from api.config import settings
from backend.models.job import JobRecord

logger = logging.getLogger(__name__)


class JobStateStore:
    """
    Redis-backed store for the single import job record.

    The orchestrator is the only writer while a job is running; every
    other caller only reads.
    """

    def __init__(self, redis_client: Optional[redis.Redis] = None,
                 key: Optional[str] = None,
                 lock_key: Optional[str] = None,
                 lock_timeout: Optional[int] = None):
        """
        Initialize job state store.

        Args:
            redis_client: Redis client (default: client for settings.REDIS_URL)
            key: Key holding the job record (default: settings.JOB_STATE_KEY)
            lock_key: Key used for the admission lock
            lock_timeout: Admission lock expiry in seconds
        """
        self.redis = redis_client or redis.Redis.from_url(settings.REDIS_URL, decode_responses=True)
        self.key = key or settings.JOB_STATE_KEY
        self.lock_key = lock_key or settings.JOB_ADMISSION_LOCK_KEY
        self.lock_timeout = lock_timeout or settings.JOB_ADMISSION_LOCK_TIMEOUT

    def load(self) -> JobRecord:
        """
        Load the current job record.

        Returns:
            Stored record, or an idle record with no steps if nothing is stored
        """
        raw = self.redis.get(self.key)
        if not raw:
            return JobRecord()

        try:
            return JobRecord.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Discarding unreadable job record under {self.key}: {e}")
            return JobRecord()

    def save(self, record: JobRecord) -> None:
        """Overwrite the stored job record."""
        self.redis.set(self.key, record.to_json())
        logger.debug(f"Job record saved: state={record.state.value}")

    @contextmanager
    def admission_lock(self) -> Iterator[None]:
        """
        Serialize job admission across processes.

        Held only for the load-compare-save sequence of starting a job. The
        wait is a blocking sleep, so async callers enter it from a thread.

        Raises:
            LockError: If the lock is not acquired within lock_timeout seconds
        """
        lock = self.redis.lock(self.lock_key, timeout=self.lock_timeout,
                               blocking_timeout=self.lock_timeout)
        if not lock.acquire():
            raise LockError(f"Could not acquire {self.lock_key} within {self.lock_timeout}s")
        try:
            yield
        finally:
            try:
                lock.release()
            except LockError as e:
                # Expired while held
                logger.warning(f"Admission lock {self.lock_key} released late: {e}")
