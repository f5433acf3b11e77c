"""CLI interface for vardeps using Click."""

from __future__ import annotations

import click
from dotenv import load_dotenv

from vardeps import __version__
from vardeps.cli_commands import register_deps_commands
from vardeps.utils.config import CONFIG_ENV_VAR

load_dotenv()


@click.group()
@click.option(
    "--config",
    "-c",
    default=None,
    envvar=CONFIG_ENV_VAR,
    help="Path to custom YAML config",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.version_option(__version__, prog_name="vardeps")
@click.pass_context
def cli(ctx: click.Context, config: str | None, verbose: bool) -> None:
    """vardeps: strip dependency entries from package meta.json descriptors."""
    from vardeps.utils.config import load_config

    overrides = {}
    if verbose:
        overrides["general.log_level"] = "DEBUG"

    cfg = load_config(overrides=overrides or None, config_path=config)
    ctx.ensure_object(dict)
    ctx.obj["cfg"] = cfg

    from vardeps.utils.logger import setup_logger
    setup_logger("vardeps", level=cfg.general.log_level, log_file=cfg.general.get("log_file"))


register_deps_commands(cli)


if __name__ == "__main__":
    cli()
