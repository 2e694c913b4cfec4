"""
Import job Pydantic schemas.

This module contains request and response schemas for starting the UKE
import job and polling its status.
"""

from typing import Optional
from pydantic import BaseModel, Field

from backend.models.job import ImportOptions, JobRecord


class ImportJobRequest(BaseModel):
    """Request body for starting an import job. Omitted flags default to true."""

    importStations: Optional[bool] = Field(None, description="Import base station permits")
    importRadiolines: Optional[bool] = Field(None, description="Import radio link permits")
    importPermits: Optional[bool] = Field(None, description="Import permit device registrations")

    class Config:
        json_schema_extra = {
            "example": {
                "importStations": True,
                "importRadiolines": False,
                "importPermits": True
            }
        }

    def to_options(self) -> ImportOptions:
        flags = {
            'import_stations': self.importStations,
            'import_radiolines': self.importRadiolines,
            'import_permits': self.importPermits,
        }
        return ImportOptions(**{k: v for k, v in flags.items() if v is not None})


class ImportJobResponse(BaseModel):
    """Import job record wrapped in a data envelope."""

    data: JobRecord = Field(..., description="Current import job record")

    class Config:
        json_schema_extra = {
            "example": {
                "data": {
                    "state": "running",
                    "startedAt": "2025-10-15T12:00:00Z",
                    "steps": [
                        {"id": "stations", "status": "success",
                         "startedAt": "2025-10-15T12:00:00Z", "finishedAt": "2025-10-15T12:03:10Z"},
                        {"id": "radiolines", "status": "running", "startedAt": "2025-10-15T12:03:10Z"},
                        {"id": "permits", "status": "pending"},
                        {"id": "prune_associations", "status": "pending"},
                        {"id": "associate", "status": "pending"},
                        {"id": "cleanup", "status": "pending"}
                    ]
                }
            }
        }
