"""
Pytest configuration and fixtures for import job tests.
"""

import os

# Keep the app from writing api.log or touching Redis at startup
os.environ.setdefault('LOG_FILE', '')
os.environ.setdefault('RECOVER_INTERRUPTED_JOBS', 'false')

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from backend.models.schema import Base
from services.import_job_service import ImportJobController
from services.import_orchestrator import ImportOrchestrator
from services.job_state_store import JobStateStore
from tests.doubles import Collaborator, InMemoryRedis, ScriptedDispatcher


@pytest.fixture
def redis_client():
    return InMemoryRedis()


@pytest.fixture
def store(redis_client):
    return JobStateStore(redis_client=redis_client, key='test:job', lock_key='test:job:lock', lock_timeout=1)


@pytest.fixture
def dispatcher():
    return ScriptedDispatcher()


@pytest.fixture
def collaborators():
    return {
        'prune_associations': Collaborator(),
        'associate': Collaborator(),
        'cleanup': Collaborator(),
    }


@pytest.fixture
def orchestrator(store, dispatcher, collaborators):
    return ImportOrchestrator(store=store, dispatcher=dispatcher, **collaborators)


@pytest.fixture
def controller(store, orchestrator):
    return ImportJobController(store, orchestrator)


@pytest.fixture
def engine():
    """Create in-memory SQLite engine with all tables."""
    eng = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture
def session(engine):
    """Create a new database session for a test."""
    Session = sessionmaker(bind=engine)
    sess = Session()

    yield sess

    sess.close()
