"""State commands - inspect recorded resources (read-only)."""

import json as jsonlib
import sys
import click
from ...presentation.human_formatter import format_record, format_state_list
from ...utils.errors import ConvergeError
from ..utils import build_runtime, format_error


@click.group()
def state():
    """Inspect recorded state (read-only)."""
    pass


@state.command(name="list")
@click.pass_context
def list_resources(ctx):
    """List recorded addresses and identifiers."""
    try:
        runtime = build_runtime(ctx)
        records = runtime.store.records()
        if records:
            click.echo(format_state_list(records))
    except ConvergeError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)


@state.command()
@click.argument('address')
@click.option('--json', is_flag=True, help='Output the raw record as JSON')
@click.pass_context
def show(ctx, address, json):
    """Show one recorded resource."""
    try:
        runtime = build_runtime(ctx)
        record = runtime.store.get(address)
        if record is None:
            click.echo(format_error(f"No resource recorded at {address}", "Run 'converge state list' to see recorded addresses"), err=True)
            sys.exit(1)
        if json:
            click.echo(jsonlib.dumps(record.model_dump(mode="json"), indent=2, sort_keys=True))
        else:
            click.echo(format_record(record))
    except ConvergeError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)
