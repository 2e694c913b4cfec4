"""Models package for the UKE import system."""
from backend.models.schema import Base, Station, UkePermit, StationPermit, UkeImportMetadata
from backend.models.job import JobRecord, JobState, Stage, StageId, StageStatus, ImportOptions

__all__ = [
    'Base', 'Station', 'UkePermit', 'StationPermit', 'UkeImportMetadata',
    'JobRecord', 'JobState', 'Stage', 'StageId', 'StageStatus', 'ImportOptions',
]
