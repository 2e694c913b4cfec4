"""
Import job record models.

This module defines the value types describing one run of the UKE import
pipeline: the fixed stage list, per-stage status and the job record that is
persisted as a single JSON value in Redis.
"""

from enum import Enum
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class StageId(str, Enum):
    """Pipeline stages, in execution order."""
    STATIONS = 'stations'
    RADIOLINES = 'radiolines'
    PERMITS = 'permits'
    PRUNE_ASSOCIATIONS = 'prune_associations'
    ASSOCIATE = 'associate'
    CLEANUP = 'cleanup'


STAGE_ORDER: List[StageId] = [
    StageId.STATIONS,
    StageId.RADIOLINES,
    StageId.PERMITS,
    StageId.PRUNE_ASSOCIATIONS,
    StageId.ASSOCIATE,
    StageId.CLEANUP,
]

INGESTION_STAGES: List[StageId] = [StageId.STATIONS, StageId.RADIOLINES, StageId.PERMITS]

# Task names understood by the ingestion workers
STAGE_TASK_NAMES = {
    StageId.STATIONS: 'importStations',
    StageId.RADIOLINES: 'importRadiolines',
    StageId.PERMITS: 'importPermitDevices',
}


class StageStatus(str, Enum):
    """Stage execution status."""
    PENDING = 'pending'
    RUNNING = 'running'
    SUCCESS = 'success'
    SKIPPED = 'skipped'
    ERROR = 'error'


TERMINAL_STAGE_STATUSES = {StageStatus.SUCCESS, StageStatus.SKIPPED, StageStatus.ERROR}


class JobState(str, Enum):
    """Overall import job state."""
    IDLE = 'idle'
    RUNNING = 'running'
    SUCCESS = 'success'
    ERROR = 'error'


class _CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        use_enum_values = False


class Stage(_CamelModel):
    """One named unit of pipeline work."""

    id: StageId
    status: StageStatus = StageStatus.PENDING
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STAGE_STATUSES


class JobRecord(_CamelModel):
    """
    Snapshot of the current (or last) import job.

    Only one record exists at a time; starting a new job overwrites it.
    """

    state: JobState = JobState.IDLE
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    steps: List[Stage] = Field(default_factory=list)
    error: Optional[str] = None

    @classmethod
    def seed(cls, started_at: datetime) -> 'JobRecord':
        """Create a fresh running record with every stage pending."""
        return cls(
            state=JobState.RUNNING,
            started_at=started_at,
            steps=[Stage(id=stage_id) for stage_id in STAGE_ORDER],
        )

    def is_running(self) -> bool:
        return self.state == JobState.RUNNING

    def step(self, stage_id: StageId) -> Optional[Stage]:
        for stage in self.steps:
            if stage.id == stage_id:
                return stage
        return None

    def to_json(self) -> str:
        """Serialize to the persisted camelCase shape, omitting absent fields."""
        return self.model_dump_json(by_alias=True, exclude_none=True)


class ImportOptions(_CamelModel):
    """Which ingestion stages to run; disabled stages are skipped."""

    import_stations: bool = True
    import_radiolines: bool = True
    import_permits: bool = True

    def is_enabled(self, stage_id: StageId) -> bool:
        if stage_id == StageId.STATIONS:
            return self.import_stations
        if stage_id == StageId.RADIOLINES:
            return self.import_radiolines
        if stage_id == StageId.PERMITS:
            return self.import_permits
        return True
