"""
Import router - Start the UKE import job and poll its status.

Only one import job runs at a time. Starting while a job is running is not
an error: the running job's status is returned instead.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, status

from api.dependencies import get_controller, get_current_user
from api.schemas.job_schema import ImportJobRequest, ImportJobResponse
from services.import_job_service import ImportJobController

logger = logging.getLogger(__name__)

# Create router
router = APIRouter(prefix='/uke/import', tags=['import'])


@router.post(
    '',
    response_model=ImportJobResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_202_ACCEPTED
)
async def start_import(
    request: Optional[ImportJobRequest] = Body(None),
    controller: ImportJobController = Depends(get_controller),
    current_user: str = Depends(get_current_user)
):
    """
    Start the UKE import job.

    Runs stations, radio links and permit device ingestion (each can be
    disabled), reconciles station-permit associations when stations or
    permits changed, then removes downloaded files.

    **Returns:**
    - 202 Accepted with the seeded job record, or the record of the job
      that is already running
    - Poll GET /api/uke/import/status for progress
    """
    options = (request or ImportJobRequest()).to_options()
    logger.info(f"Import requested by {current_user}: {options.model_dump()}")

    job = await controller.start_import_job(options)
    return ImportJobResponse(data=job)


@router.get('/status', response_model=ImportJobResponse, response_model_exclude_none=True)
async def get_import_status(
    controller: ImportJobController = Depends(get_controller),
    current_user: str = Depends(get_current_user)
):
    """
    Get the current (or last) import job record.

    **Job states:**
    - `idle`: No job has run yet
    - `running`: A job is in progress
    - `success`: The last job finished without errors
    - `error`: The last job failed; `error` holds the message

    **Stage statuses:** `pending`, `running`, `success` (data changed),
    `skipped` (disabled or nothing new), `error`
    """
    return ImportJobResponse(data=controller.get_import_job_status())
