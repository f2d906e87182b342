"""Main CLI entry point for converge."""

import click
from .commands.plan import plan
from .commands.apply import apply
from .commands.destroy import destroy
from .commands.output import output
from .commands.state import state
from .commands.version import version
from .. import __version__


@click.group()
@click.version_option(version=__version__, prog_name="converge", message="%(prog)s version %(version)s")
@click.option('--state', 'state_path', type=click.Path(dir_okay=False), help='State file (overrides state.path)')
@click.option('--config', 'config_path', type=click.Path(dir_okay=False), help='Config file (overrides the project config)')
@click.option('--verbose', '-v', is_flag=True, help='Debug logging')
@click.pass_context
def cli(ctx, state_path, config_path, verbose):
    """converge - Declarative infrastructure reconciliation."""
    ctx.ensure_object(dict)
    ctx.obj.update(state_path=state_path, config_path=config_path, verbose=verbose)


cli.add_command(plan)
cli.add_command(apply)
cli.add_command(destroy)
cli.add_command(output)
cli.add_command(state)
cli.add_command(version)
