"""Main entry point for the zoomnet application.

Sets up the Typer CLI application, performs dependency injection (Composition Root),
defines CLI commands, and delegates execution to the IntegrationRunner.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import typer
from typing_extensions import Annotated

# --- Setup Logging Early ---
# Use basic config until setup_logging is called with the configured settings
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

# --- Core Layer ---
from zoomnet.core.cancellation import CancellationToken, install_interrupt_handler
from zoomnet.core.jobs.registry import JOB_REGISTRY, job_names
from zoomnet.core.services.integration_runner import IntegrationRunner

# --- Domain Layer ---
from zoomnet.domain.errors import ConfigurationError
from zoomnet.domain.models.common import UserId
from zoomnet.domain.models.jobs import ExitStatus

# --- Infrastructure Layer ---
from zoomnet.infrastructure.api.client import ApiClient
from zoomnet.infrastructure.cli.display import ConsoleDisplay
from zoomnet.infrastructure.config.settings import (
    get_access_token, get_base_url, get_config, get_max_concurrency, get_proxy,
    get_retry_settings, get_timeout_seconds, get_user_id, load_configuration
)
from zoomnet.infrastructure.monitoring.logger_setup import setup_logging
from zoomnet.infrastructure.resilience.api_retry import ApiRetryService
from zoomnet.infrastructure.resilience.clock import SystemClock
from zoomnet.infrastructure.resilience.retry_policy import RetryBackoffPolicy

# --- Dependency Injection Container (Manual) ---

def create_dependencies(
    ui: ConsoleDisplay,
    user_id: Optional[str] = None,
    max_concurrency: Optional[int] = None,
    proxy: Optional[str] = None,
) -> Dict[str, Any]:
    """Creates and wires up all dependencies for a batch run.

    This acts as the Composition Root. Command-line values take precedence
    over configuration.

    Raises:
        ConfigurationError: If required settings are missing or invalid.
    """
    logger.info("Initializing application dependencies...")
    dependencies: Dict[str, Any] = {'ui': ui}

    # 1. Load Configuration First
    load_configuration()
    setup_logging(
        log_level=get_config('logging.level'),
        log_format=get_config('logging.format'),
        log_file=get_config('logging.file'),
    )
    logger.debug("Configuration and logging initialized.")

    # 2. Resilience
    dependencies['retry_policy'] = RetryBackoffPolicy(clock=SystemClock.instance(), **get_retry_settings())
    dependencies['api_retry_service'] = ApiRetryService(dependencies['retry_policy'])

    # 3. API client
    dependencies['client'] = ApiClient(
        access_token=get_access_token(),
        retry_service=dependencies['api_retry_service'],
        base_url=get_base_url(),
        timeout=get_timeout_seconds(),
        proxy=proxy or get_proxy(),
    )

    # 4. Core services
    dependencies['runner'] = IntegrationRunner(
        client=dependencies['client'],
        user_id=UserId(user_id or get_user_id()),
        sink=ui,
        max_concurrency=max_concurrency or get_max_concurrency(),
    )

    logger.info("All dependencies initialized successfully.")
    return dependencies


async def run_batch(dependencies: Dict[str, Any], names: Optional[List[str]] = None) -> int:
    """Runs the jobs with console interrupts wired to cancellation."""
    cancellation = CancellationToken()
    restore_handler = install_interrupt_handler(cancellation)
    try:
        async with dependencies['client']:
            return await dependencies['runner'].run(cancellation, names)
    finally:
        restore_handler()

# --- Typer App Definition ---
app = typer.Typer(
    name="zoomnet",
    help="zoomnet: Zoom REST API client with a concurrent integration-test harness.",
    add_completion=False,
)


def _validate_job_names(names: Optional[List[str]]) -> Optional[List[str]]:
    for name in names or []:
        if name not in JOB_REGISTRY:
            raise typer.BadParameter(f"Unknown job '{name}'. Available: {', '.join(job_names())}")
    return names

# --- CLI Commands ---

@app.command()
def run(
    job: Annotated[
        Optional[List[str]],
        typer.Option("--job", "-j", callback=_validate_job_names, help="Job to run (repeatable). Runs every job if omitted.")
    ] = None,
    max_concurrency: Annotated[
        Optional[int],
        typer.Option("--max-concurrency", "-c", min=1, help="Maximum number of jobs running at once.")
    ] = None,
    user_id: Annotated[
        Optional[str],
        typer.Option("--user-id", "-u", help="User the jobs operate on. Defaults to ZOOM_USERID.")
    ] = None,
    proxy: Annotated[
        Optional[str],
        typer.Option("--proxy", help="Proxy URL for API requests (e.g. http://localhost:8888).")
    ] = None,
):
    """Run integration jobs against the API and exit with the aggregated status."""
    ui = ConsoleDisplay()
    try:
        dependencies = create_dependencies(ui, user_id=user_id, max_concurrency=max_concurrency, proxy=proxy)
    except ConfigurationError as e:
        logger.error(f"Application initialization failed: {e}")
        ui.display_error(str(e))
        raise typer.Exit(code=int(ExitStatus.EXCEPTION))

    exit_code = asyncio.run(run_batch(dependencies, job))
    logger.info(f"Batch finished with exit status {exit_code}")
    raise typer.Exit(code=exit_code)


@app.command(name="list-jobs")
def list_jobs_command():
    """Lists the registered integration jobs."""
    for name in job_names():
        typer.echo(name)

# --- Main Execution Guard ---

def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    app()

if __name__ == "__main__":
    cli_entry_point()
