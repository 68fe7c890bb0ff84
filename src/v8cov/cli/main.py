"""v8cov CLI - v8cov command."""

import click

from v8cov.cli.convert import convert_command
from v8cov.cli.summary import summary_command
from v8cov.config.loader import load_config
from v8cov.core.errors import ConfigError
from v8cov.core.logging import configure_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="v8cov")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """v8cov - Convert V8 profiler coverage to Istanbul coverage."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    try:
        logging_config = load_config().logging
    except ConfigError as e:
        raise click.ClickException(str(e)) from e
    if verbose:
        logging_config = logging_config.model_copy(update={"level": "DEBUG"})
    configure_logging(config=logging_config)


cli.add_command(convert_command, name="convert")
cli.add_command(summary_command, name="summary")


if __name__ == "__main__":
    cli()
