"""Destroy command - remove every recorded resource."""

import sys
import click
from ...ingest.models import DesiredState
from ...utils.errors import ConvergeError
from ...utils.logging import get_logger
from ..utils import build_runtime, format_error
from .apply import EXIT_FAILED, run_apply

logger = get_logger("cli.destroy")


@click.command()
@click.option('--json', is_flag=True, help='Output structured JSON instead of human-readable')
@click.option('--refresh/--no-refresh', default=None, help='Read recorded resources from the provider first')
@click.option('--parallelism', type=click.IntRange(min=1), help='Concurrent steps per batch')
@click.option('--timeout', type=click.FloatRange(min=0, min_open=True), help='Seconds allowed per provider call')
@click.option('--quiet', is_flag=True, help='Do not print the plan before applying')
@click.pass_context
def destroy(ctx, json, refresh, parallelism, timeout, quiet):
    """Destroy everything recorded in the state, dependents first."""
    try:
        runtime = build_runtime(ctx)
        if refresh is None:
            refresh = runtime.refresh
        run_apply(runtime, DesiredState(), True, refresh, parallelism, timeout, json, quiet)
    
    except ConvergeError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(EXIT_FAILED)
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        click.echo(format_error(f"Destroy failed: {e}"), err=True)
        sys.exit(EXIT_FAILED)
