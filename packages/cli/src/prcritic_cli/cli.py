"""CLI entry point for prcritic.

Commands:
  review   Review a pull request and post the result
  history  Show the automation review history reconstructed from GitHub
  payload  Save a webhook-style pull request payload for local runs
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from prcritic_cli.commands.history import history_cmd
from prcritic_cli.commands.payload import payload_cmd
from prcritic_cli.commands.review import review_cmd


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
    if verbose:
        # PyGithub and the SDK HTTP clients are noisy at DEBUG.
        for name in ("github", "urllib3", "httpx", "httpcore"):
            logging.getLogger(name).setLevel(logging.INFO)


@click.group()
@click.version_option(
    version=importlib.metadata.version("prcritic"),
    prog_name="prcritic",
)
@click.option(
    "--config",
    "config_path",
    default=".prcritic.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="PRCRITIC_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """AI-powered GitHub pull request reviewer with incremental re-reviews."""
    configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


main.add_command(review_cmd)
main.add_command(history_cmd)
main.add_command(payload_cmd)
