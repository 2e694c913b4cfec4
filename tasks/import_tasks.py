"""
Import background tasks.

This module defines the Celery task that runs one ingestion importer inside
a Celery worker and reports whether it changed any data.
"""

import logging

from tasks.celery_app import celery_app
from services.importer_registry import run_importer

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, name='tasks.import_tasks.run_ingestion_task')
def run_ingestion_task(self, task_name: str) -> bool:
    """
    Background task running a single ingestion importer.

    Args:
        task_name: Importer task name ('importStations', 'importRadiolines'
            or 'importPermitDevices')

    Returns:
        True if the importer wrote new or changed data
    """
    logger.info(f"Starting ingestion task {self.request.id}: {task_name}")

    try:
        changed = run_importer(task_name)
    except Exception as e:
        logger.error(f"Ingestion task {self.request.id} ({task_name}) failed: {e}", exc_info=True)
        # Re-raise for Celery to handle
        raise

    logger.info(f"Ingestion task {self.request.id} ({task_name}) completed: changed={changed}")
    return changed
