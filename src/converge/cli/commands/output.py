"""Output command - show output values resolved against current state."""

import json as jsonlib
import sys
import click
from ... import load_desired_state
from ...outputs import resolve_outputs
from ...presentation.human_formatter import format_outputs
from ...utils.errors import ConvergeError
from ..utils import build_runtime, format_error, resolve_file_path


@click.command()
@click.argument('document', type=click.Path(exists=False))
@click.argument('name', required=False)
@click.option('--json', is_flag=True, help='Output structured JSON')
@click.pass_context
def output(ctx, document, name, json):
    """Print the outputs of DOCUMENT, or only NAME."""
    try:
        try:
            document_path = resolve_file_path(document)
        except FileNotFoundError as e:
            click.echo(format_error(str(e)), err=True)
            sys.exit(1)
        
        runtime = build_runtime(ctx)
        desired = load_desired_state(str(document_path))
        
        if name is not None:
            if name not in desired.outputs:
                click.echo(format_error(f"No output named '{name}'", f"Available: {', '.join(sorted(desired.outputs)) or 'none'}"), err=True)
                sys.exit(1)
            value = resolve_outputs({name: desired.outputs[name]}, runtime.store)[name]
            click.echo(jsonlib.dumps(value) if json or not isinstance(value, str) else value)
            return
        
        values = resolve_outputs(desired.outputs, runtime.store)
        if json:
            click.echo(jsonlib.dumps(values, indent=2, sort_keys=True, default=str))
        else:
            click.echo(format_outputs(values))
    
    except ConvergeError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)
