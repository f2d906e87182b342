"""Plan command - show what apply would do without doing it."""

import json as jsonlib
import sys
import click
from ... import load_desired_state, plan_changes
from ...ingest.models import DesiredState
from ...presentation.human_formatter import format_plan
from ...utils.errors import ConvergeError
from ...utils.logging import get_logger
from ..utils import build_runtime, format_error, resolve_file_path

logger = get_logger("cli.plan")


@click.command()
@click.argument('document', type=click.Path(exists=False), required=False)
@click.option('--destroy', is_flag=True, help='Plan destruction of every recorded resource')
@click.option('--json', is_flag=True, help='Output structured JSON instead of human-readable')
@click.option('--refresh/--no-refresh', default=None, help='Read recorded resources from the provider first')
@click.pass_context
def plan(ctx, document, destroy, json, refresh):
    """
    Build the resource graph, diff it against state and print the plan.
    
    Nothing is changed, neither infrastructure nor state. --refresh only
    reads from the provider.
    """
    try:
        if destroy:
            desired = DesiredState()
        elif document is None:
            click.echo(format_error("Missing DOCUMENT", "Pass a desired-state file, or --destroy"), err=True)
            sys.exit(1)
        else:
            try:
                document_path = resolve_file_path(document)
            except FileNotFoundError as e:
                click.echo(format_error(str(e)), err=True)
                sys.exit(1)
            desired = load_desired_state(str(document_path))
        
        runtime = build_runtime(ctx)
        if refresh is None:
            refresh = runtime.refresh
        
        execution_plan = plan_changes(desired, runtime.store, runtime.provider, destroy=destroy, refresh=refresh)
        
        if json:
            click.echo(jsonlib.dumps(execution_plan.to_dict(), indent=2, default=str))
        else:
            click.echo(format_plan(execution_plan))
    
    except ConvergeError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        click.echo(format_error(f"Plan failed: {e}"), err=True)
        sys.exit(1)
