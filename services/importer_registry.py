"""
Importer Registry - Resolve ingestion task names to importer callables.

Importers are the spreadsheet scrapers that write stations, radio links and
permit devices. They live outside this service and are located lazily by
``module:function`` entry points so a worker only imports the importer it
runs.
"""

import importlib
import logging
from typing import Callable, Dict, Optional

from api.config import settings
from services.exceptions import UnknownTaskError

logger = logging.getLogger(__name__)

Importer = Callable[[], object]

_registered: Dict[str, Importer] = {}


def register_importer(task_name: str, importer: Optional[Importer] = None):
    """
    Register an importer for a task name.

    Usable directly or as a decorator. Registered importers take precedence
    over configured entry points.
    """
    def decorator(fn: Importer) -> Importer:
        _registered[task_name] = fn
        return fn

    if importer is not None:
        return decorator(importer)
    return decorator


def unregister_importer(task_name: str) -> None:
    _registered.pop(task_name, None)


def registered_importer(task_name: str) -> Optional[Importer]:
    """Return the explicitly registered importer, if any."""
    return _registered.get(task_name)


def _load_entrypoint(task_name: str, entrypoint: str) -> Importer:
    module_name, sep, attr = entrypoint.partition(':')
    if not sep or not module_name or not attr:
        raise UnknownTaskError(f"Invalid entry point for {task_name}: {entrypoint!r}")

    module = importlib.import_module(module_name)
    try:
        return getattr(module, attr)
    except AttributeError as e:
        raise UnknownTaskError(f"Entry point {entrypoint} has no attribute {attr}") from e


def resolve_importer(task_name: str, entrypoints: Optional[Dict[str, str]] = None) -> Importer:
    """
    Find the importer for a task name.

    Args:
        task_name: Worker task name, e.g. 'importStations'
        entrypoints: Mapping of task name to 'module:function'
            (default: settings.IMPORTER_ENTRYPOINTS)

    Raises:
        UnknownTaskError: If nothing is registered or configured for task_name
    """
    if task_name in _registered:
        return _registered[task_name]

    entrypoints = settings.IMPORTER_ENTRYPOINTS if entrypoints is None else entrypoints
    entrypoint = entrypoints.get(task_name)
    if not entrypoint:
        raise UnknownTaskError(f"Unknown task: {task_name}")

    logger.debug(f"Loading importer {task_name} from {entrypoint}")
    return _load_entrypoint(task_name, entrypoint)


def run_importer(task_name: str) -> bool:
    """Run the importer for task_name and return its 'data changed' flag."""
    importer = resolve_importer(task_name)
    return bool(importer())
