"""
Worker Dispatcher - Run ingestion tasks in isolated execution units.

Each call sends a task name to a fresh worker and waits for a single reply:
either the importer's boolean "data changed" flag or an error message.
Parsing and download work therefore never runs on the event loop that
serves API requests. There are no retries here; the caller decides.

Two backends are available:
- ProcessWorkerDispatcher: one OS process per task, reply over a pipe
- CeleryWorkerDispatcher: task sent to the Celery 'import' queue
"""

import asyncio
import logging
import multiprocessing
from typing import Optional

from api.config import settings
from services.exceptions import DispatchError
from services.importer_registry import Importer, registered_importer, resolve_importer
from tasks.import_tasks import run_ingestion_task

logger = logging.getLogger(__name__)


class WorkerDispatcher:
    """Base class for dispatch backends."""

    async def run(self, task_name: str) -> bool:
        """
        Run an ingestion task in an isolated worker.

        Args:
            task_name: Worker task name, e.g. 'importStations'

        Returns:
            True if the task wrote new or changed data

        Raises:
            DispatchError: If the worker fails for any reason
        """
        raise NotImplementedError


def _worker_main(conn, task_name: str, importer: Optional[Importer]) -> None:
    """Entry point of a worker process."""
    try:
        if importer is None:
            importer = resolve_importer(task_name)
        result = bool(importer())
        conn.send({'success': True, 'result': result})
    except Exception as e:
        conn.send({'success': False, 'error': str(e) or type(e).__name__})
    finally:
        conn.close()


class ProcessWorkerDispatcher(WorkerDispatcher):
    """Runs every task in its own process and reads the reply from a pipe."""

    def __init__(self, start_method: Optional[str] = None):
        """
        Initialize process dispatcher.

        Args:
            start_method: multiprocessing start method
                (default: settings.WORKER_START_METHOD)
        """
        self.start_method = start_method or settings.WORKER_START_METHOD

    async def run(self, task_name: str) -> bool:
        return await asyncio.to_thread(self._run_blocking, task_name)

    def _run_blocking(self, task_name: str) -> bool:
        ctx = multiprocessing.get_context(self.start_method)
        reader, writer = ctx.Pipe(duplex=False)
        process = ctx.Process(
            target=_worker_main,
            args=(writer, task_name, registered_importer(task_name)),
            name=f'uke-import-{task_name}',
        )

        try:
            process.start()
        except Exception as e:
            reader.close()
            writer.close()
            raise DispatchError(f"Could not start worker for {task_name}: {e}", task_name) from e

        # Only the child holds the write end now, so recv() sees EOF if it dies
        writer.close()
        logger.info(f"Worker {process.pid} started for {task_name}")

        message = None
        try:
            message = reader.recv()
        except EOFError:
            pass
        finally:
            reader.close()
            process.join()

        if message is None:
            raise DispatchError(f"Worker exited with code {process.exitcode}", task_name)
        if not message.get('success'):
            raise DispatchError(message.get('error') or 'Worker task failed', task_name)
        if process.exitcode not in (0, None):
            raise DispatchError(f"Worker exited with code {process.exitcode}", task_name)

        result = bool(message.get('result', False))
        logger.info(f"Worker {process.pid} finished {task_name}: changed={result}")
        return result


class CeleryWorkerDispatcher(WorkerDispatcher):
    """Sends tasks to Celery workers and waits for their result."""

    def __init__(self, timeout: Optional[int] = None, queue: str = 'import'):
        self.timeout = timeout or settings.IMPORT_TASK_TIMEOUT
        self.queue = queue

    async def run(self, task_name: str) -> bool:
        try:
            async_result = run_ingestion_task.apply_async(args=[task_name], queue=self.queue)
        except Exception as e:
            raise DispatchError(f"Could not enqueue {task_name}: {e}", task_name) from e

        logger.info(f"Celery task {async_result.id} sent for {task_name}")

        try:
            result = await asyncio.to_thread(async_result.get, timeout=self.timeout)
        except Exception as e:
            raise DispatchError(str(e) or type(e).__name__, task_name) from e

        return bool(result)


def get_worker_dispatcher(backend: Optional[str] = None) -> WorkerDispatcher:
    """
    Create the dispatcher selected by configuration.

    Args:
        backend: 'process' or 'celery' (default: settings.WORKER_BACKEND)
    """
    backend = (backend or settings.WORKER_BACKEND).lower()
    if backend == 'process':
        return ProcessWorkerDispatcher()
    if backend == 'celery':
        return CeleryWorkerDispatcher()
    raise ValueError(f"Unsupported worker backend: {backend}")
