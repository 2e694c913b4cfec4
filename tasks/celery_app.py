"""
Celery application configuration.

This module sets up Celery for running ingestion tasks in worker processes
with Redis as the message broker and result backend.
"""

from celery import Celery
from kombu import Exchange, Queue

from api.config import settings

# Create Celery application
celery_app = Celery(
    'uke_import',
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=['tasks.import_tasks']
)

# Celery configuration
celery_app.conf.update(
    # Serialization
    task_serializer='json',
    result_serializer='json',
    accept_content=['json'],

    # Timezone
    timezone='UTC',
    enable_utc=True,

    # Task execution
    task_track_started=True,
    task_time_limit=settings.IMPORT_TASK_TIMEOUT,
    worker_prefetch_multiplier=1,  # One task at a time per worker

    # Results
    result_expires=3600,

    # Task routing
    task_default_queue='default',
    task_default_exchange='default',
    task_default_routing_key='default',

    # Importers hold large sheets in memory; recycle the worker after each task
    worker_max_tasks_per_child=1,

    # Task acknowledgement
    task_acks_late=True,
    task_reject_on_worker_lost=True,
)

# Define task queues
celery_app.conf.task_queues = (
    Queue('default', Exchange('default'), routing_key='default'),
    Queue('import', Exchange('import'), routing_key='import.#'),
)

# Task routes
celery_app.conf.task_routes = {
    'tasks.import_tasks.run_ingestion_task': {'queue': 'import', 'routing_key': 'import.ingestion'},
}


if __name__ == '__main__':
    celery_app.start()
