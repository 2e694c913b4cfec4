#!/usr/bin/env python3
"""
UKE Import CLI - Dual Mode

This script can operate in two modes:
1. Direct mode (default): Runs the import pipeline in this process
2. API mode: Makes HTTP requests to the FastAPI backend

Usage:
    # Direct mode (runs the job here and waits for it)
    python scripts/uke_import_cli.py run [--no-stations] [--no-radiolines] [--no-permits]

    # API mode (starts the job on the backend)
    python scripts/uke_import_cli.py start --api-url http://localhost:8000 [--wait]

    # Status (reads Redis directly, or the backend with --api-url)
    python scripts/uke_import_cli.py status [--api-url http://localhost:8000]
"""

import os
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import asyncio
import logging
import time
from typing import Optional

import click
import requests
from dotenv import load_dotenv

from backend.models.job import ImportOptions, JobRecord
from services.import_job_service import build_import_job_controller
from services.job_state_store import JobStateStore

# Load environment variables
load_dotenv()

# Configure logging
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stderr)]
)

logger = logging.getLogger('uke_import_cli')

POLL_INTERVAL = 2.0


def print_job(job: JobRecord):
    """Print a job record as a stage table."""
    click.echo(f"State: {job.state.value.upper()}")
    if job.started_at:
        click.echo(f"Started:  {job.started_at.isoformat()}")
    if job.finished_at:
        click.echo(f"Finished: {job.finished_at.isoformat()}")

    for stage in job.steps:
        click.echo(f"  {stage.id.value:<20} {stage.status.value}")

    if job.error:
        click.echo(f"Error: {job.error}", err=True)


@click.group()
def cli():
    """UKE register import CLI"""


@cli.command('run')
@click.option('--no-stations', is_flag=True, help='Skip station permit ingestion')
@click.option('--no-radiolines', is_flag=True, help='Skip radio link ingestion')
@click.option('--no-permits', is_flag=True, help='Skip permit device ingestion')
def run_cmd(no_stations: bool, no_radiolines: bool, no_permits: bool):
    """Run an import job in this process and wait for it to finish."""
    options = ImportOptions(
        import_stations=not no_stations,
        import_radiolines=not no_radiolines,
        import_permits=not no_permits,
    )
    job = asyncio.run(run_direct(options))
    print_job(job)
    sys.exit(0 if job.state.value == 'success' else 1)


async def run_direct(options: ImportOptions) -> JobRecord:
    controller = build_import_job_controller()
    started = await controller.start_import_job(options)
    if not controller.has_background_jobs():
        click.echo("An import job is already running", err=True)
        return started

    await controller.wait_for_background_jobs()
    return controller.get_import_job_status()


@cli.command('start')
@click.option('--api-url', envvar='API_URL', required=True, help='FastAPI backend URL')
@click.option('--no-stations', is_flag=True, help='Skip station permit ingestion')
@click.option('--no-radiolines', is_flag=True, help='Skip radio link ingestion')
@click.option('--no-permits', is_flag=True, help='Skip permit device ingestion')
@click.option('--wait', is_flag=True, help='Poll until the job finishes')
def start_cmd(api_url: str, no_stations: bool, no_radiolines: bool, no_permits: bool, wait: bool):
    """Start an import job on the backend."""
    payload = {
        'importStations': not no_stations,
        'importRadiolines': not no_radiolines,
        'importPermits': not no_permits,
    }
    response = requests.post(f"{api_url}/api/uke/import", json=payload, timeout=30)
    response.raise_for_status()
    job = JobRecord.model_validate(response.json()['data'])

    while wait and job.is_running():
        time.sleep(POLL_INTERVAL)
        job = fetch_status(api_url)

    print_job(job)


@cli.command('status')
@click.option('--api-url', envvar='API_URL', help='FastAPI backend URL (enables API mode)')
def status_cmd(api_url: Optional[str]):
    """Show the current import job record."""
    if api_url:
        job = fetch_status(api_url)
    else:
        job = JobStateStore().load()
    print_job(job)


def fetch_status(api_url: str) -> JobRecord:
    response = requests.get(f"{api_url}/api/uke/import/status", timeout=30)
    response.raise_for_status()
    return JobRecord.model_validate(response.json()['data'])


if __name__ == '__main__':
    cli()
