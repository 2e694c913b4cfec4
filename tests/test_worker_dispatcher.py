"""
Tests for the worker dispatch backends.
"""

import multiprocessing
import os

import pytest

from services.exceptions import DispatchError
from services.importer_registry import register_importer, unregister_importer
from services.worker_dispatcher import (
    CeleryWorkerDispatcher, ProcessWorkerDispatcher, get_worker_dispatcher
)
from tasks.celery_app import celery_app

requires_fork = pytest.mark.skipif(
    'fork' not in multiprocessing.get_all_start_methods(),
    reason='fork start method not available'
)


def _changed():
    return True


def _unchanged():
    return False


def _boom():
    raise RuntimeError('boom')


def _hard_exit():
    os._exit(3)


@pytest.fixture
def importers():
    names = {
        'testChanged': _changed,
        'testUnchanged': _unchanged,
        'testBoom': _boom,
        'testHardExit': _hard_exit,
    }
    for name, fn in names.items():
        register_importer(name, fn)
    yield names
    for name in names:
        unregister_importer(name)


@requires_fork
class TestProcessWorkerDispatcher:

    @pytest.fixture
    def dispatcher(self):
        return ProcessWorkerDispatcher(start_method='fork')

    @pytest.mark.asyncio
    async def test_returns_changed_flag(self, dispatcher, importers):
        assert await dispatcher.run('testChanged') is True
        assert await dispatcher.run('testUnchanged') is False

    @pytest.mark.asyncio
    async def test_importer_error_becomes_dispatch_error(self, dispatcher, importers):
        with pytest.raises(DispatchError, match='boom') as exc_info:
            await dispatcher.run('testBoom')

        assert exc_info.value.task_name == 'testBoom'

    @pytest.mark.asyncio
    async def test_worker_dying_without_reply(self, dispatcher, importers):
        with pytest.raises(DispatchError, match='Worker exited with code 3'):
            await dispatcher.run('testHardExit')

    @pytest.mark.asyncio
    async def test_unknown_task(self, dispatcher):
        with pytest.raises(DispatchError, match='Unknown task: importNothing'):
            await dispatcher.run('importNothing')


class TestCeleryWorkerDispatcher:

    @pytest.fixture(autouse=True)
    def eager(self):
        celery_app.conf.task_always_eager = True
        yield
        celery_app.conf.task_always_eager = False

    @pytest.mark.asyncio
    async def test_returns_changed_flag(self, importers):
        dispatcher = CeleryWorkerDispatcher(timeout=5)

        assert await dispatcher.run('testChanged') is True
        assert await dispatcher.run('testUnchanged') is False

    @pytest.mark.asyncio
    async def test_task_error_becomes_dispatch_error(self, importers):
        dispatcher = CeleryWorkerDispatcher(timeout=5)

        with pytest.raises(DispatchError, match='boom'):
            await dispatcher.run('testBoom')

    @pytest.mark.asyncio
    async def test_unknown_task(self):
        dispatcher = CeleryWorkerDispatcher(timeout=5)

        with pytest.raises(DispatchError, match='Unknown task'):
            await dispatcher.run('importNothing')


class TestGetWorkerDispatcher:

    def test_process_backend(self):
        assert isinstance(get_worker_dispatcher('process'), ProcessWorkerDispatcher)

    def test_celery_backend(self):
        assert isinstance(get_worker_dispatcher('Celery'), CeleryWorkerDispatcher)

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            get_worker_dispatcher('threads')
