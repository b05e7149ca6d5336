import os
import sys
from dataclasses import replace

import click

from . import __version__
from .app import GroveApp
from .config import load_config, write_sample_config
from .git_service import GitService
from .logging_config import get_logger, setup_logging

logger = get_logger(__name__)

# Exit status telling a shell wrapper to cd into the printed path
JUMP_EXIT_CODE = 2


@click.command()
@click.version_option(__version__, prog_name="grove")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Read configuration from this file instead of the default location.",
)
@click.option(
    "--worktree-dir",
    type=click.Path(file_okay=False, dir_okay=True),
    default=None,
    help="Directory used to resolve relative worktree paths.",
)
@click.option("--no-jump", is_flag=True, help="Stay in grove after creating a worktree.")
@click.option("--init-config", is_flag=True, help="Write a sample configuration file and exit.")
@click.option("--debug", is_flag=True, help="Write a debug log to ~/.grove/grove.log.")
@click.option("--log-file", type=click.Path(dir_okay=False), default=None, help="Write the log to this file.")
@click.argument("repo_path", required=False, type=click.Path(file_okay=False))
def main(
    config_path: str | None,
    worktree_dir: str | None,
    no_jump: bool,
    init_config: bool,
    debug: bool,
    log_file: str | None,
    repo_path: str | None,
) -> None:
    """Browse and manage the worktrees of the git repository at REPO_PATH."""
    if init_config:
        path = write_sample_config(config_path)
        click.echo(f"Wrote sample configuration to {path}")
        return

    setup_logging(debug=debug, log_file=log_file)

    config, error = load_config(config_path)
    if error is not None:
        logger.warning("using default configuration: %s", error)
        click.echo(f"warning: {error}; using defaults", err=True)
    if worktree_dir:
        config = replace(config, worktree_dir=os.path.expanduser(worktree_dir))
    if no_jump:
        config = replace(config, jump_on_create=False)

    git_service = GitService(repo_path)
    logger.info("starting grove in %s", git_service.repo_path)
    app = GroveApp(git_service=git_service, config=config)
    result = app.run()
    if result:
        click.echo(result)
        sys.exit(JUMP_EXIT_CODE)
