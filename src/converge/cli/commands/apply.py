"""Apply command - converge infrastructure to the desired state."""

import json as jsonlib
import sys
import click
from ... import apply_changes, load_desired_state, plan_changes
from ...execute.models import ApplyResult, PlanStatus
from ...presentation.human_formatter import format_apply_result, format_plan
from ...utils.errors import ConvergeError
from ...utils.logging import get_logger
from ..utils import Runtime, build_runtime, cancel_on_interrupt, format_error, resolve_file_path

logger = get_logger("cli.apply")

EXIT_FAILED = 1
EXIT_CANCELLED = 2


def run_apply(runtime: Runtime, desired, destroy: bool, refresh: bool, parallelism, timeout, as_json: bool, quiet: bool) -> None:
    """Plan, print, execute and exit with the status of the result."""
    execution_plan = plan_changes(desired, runtime.store, runtime.provider, destroy=destroy, refresh=refresh)
    
    if not as_json and not quiet:
        click.echo(format_plan(execution_plan), err=True)
        click.echo("", err=True)
    
    with cancel_on_interrupt() as cancel_event:
        result = apply_changes(
            desired,
            runtime.store,
            runtime.provider,
            plan=execution_plan,
            parallelism=parallelism or runtime.parallelism,
            call_timeout=timeout if timeout is not None else runtime.call_timeout,
            cancel_event=cancel_event,
        )
    
    if as_json:
        click.echo(_format_json_output(result))
    else:
        click.echo(format_apply_result(result))
    
    if result.status == PlanStatus.CANCELLED:
        sys.exit(EXIT_CANCELLED)
    if not result.ok:
        sys.exit(EXIT_FAILED)


@click.command()
@click.argument('document', type=click.Path(exists=False))
@click.option('--json', is_flag=True, help='Output structured JSON instead of human-readable')
@click.option('--refresh/--no-refresh', default=None, help='Read recorded resources from the provider first')
@click.option('--parallelism', type=click.IntRange(min=1), help='Concurrent steps per batch')
@click.option('--timeout', type=click.FloatRange(min=0, min_open=True), help='Seconds allowed per provider call')
@click.option('--quiet', is_flag=True, help='Do not print the plan before applying')
@click.pass_context
def apply(ctx, document, json, refresh, parallelism, timeout, quiet):
    """
    Apply the desired-state DOCUMENT.
    
    Exit code is 0 when every step succeeded and the outputs resolved, 1 on
    failures, 2 when cancelled.
    """
    try:
        try:
            document_path = resolve_file_path(document)
        except FileNotFoundError as e:
            click.echo(format_error(str(e)), err=True)
            sys.exit(EXIT_FAILED)
        
        runtime = build_runtime(ctx)
        desired = load_desired_state(str(document_path))
        if refresh is None:
            refresh = runtime.refresh
        
        run_apply(runtime, desired, False, refresh, parallelism, timeout, json, quiet)
    
    except ConvergeError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(EXIT_FAILED)
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        click.echo(format_error(f"Apply failed: {e}"), err=True)
        sys.exit(EXIT_FAILED)


def _format_json_output(result: ApplyResult) -> str:
    """Format ApplyResult as JSON string."""
    data = result.model_dump(mode="json")
    data["counts"] = result.counts()
    return jsonlib.dumps(data, indent=2, default=str)
