from __future__ import annotations

from collections.abc import Callable
import functools
import os
from pathlib import Path
import sys
import traceback

import click
from loguru import logger

from .config_parser import Parser
from .constants import MIRROR_FILE
from .logger import setup_logger
from .mirror import Mirror
from .typed_path import AbsDir, AbsFile, RelDir, RelFile
from .types import ExitCode


def check_for_errors[**P](fn: Callable[P, ExitCode | None]) -> Callable[P, None]:
    @functools.wraps(fn)
    def main(*args: P.args, **kwargs: P.kwargs) -> None:
        try:
            exitcode = fn(*args, **kwargs)
        except BaseException as e:
            logger.debug(f"Threw {type(e)}!")
            logger.trace(traceback.format_exc())
            logger.error(f"{type(e).__name__}: {e}")
            sys.exit(1)
        if exitcode is not None:
            sys.exit(exitcode)

    return main


def config_path(config_file: str) -> AbsFile | RelFile:
    path = Path(config_file)
    return AbsFile(path) if path.is_absolute() else RelFile(path)


def mirror_root_path(mirror_root: str | None) -> AbsDir | RelDir | None:
    if mirror_root is None:
        return None
    path = Path(mirror_root)
    return AbsDir(path) if path.is_absolute() else RelDir(path)


@click.group(context_settings=dict(show_default=True))
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="Display more output (repeat up to 2 times).",
    show_default=False,
)
@click.option(
    "-q",
    "--quiet",
    count=True,
    help="Display less output (repeat up to 3 times).",
    show_default=False,
)
@check_for_errors
def main(quiet: int, verbose: int) -> None:
    setup_logger(quiet, verbose)


@main.command()
@click.option("--config-file", "--config", "-c", default=os.fspath(MIRROR_FILE))
@click.option(
    "--mirror-root",
    default=None,
    help=(
        "Directory inside the working directory to write mirrors into"
        " (overrides `mirrorRoot` in the config, module paths included)."
    ),
)
@click.option(
    "--only", multiple=True, metavar="SLUG", help="Only mirror this target (repeatable)."
)
@check_for_errors
def mirror(config_file: str, mirror_root: str | None, only: tuple[str, ...]) -> None:
    """Mirror the API packages of every configured target.

    \b
    Examples:
    # Mirror every target in ./apimirror.yaml.
    apimirror mirror

    \b
    # Mirror a single target into a different directory.
    apimirror mirror --only eck-operator --mirror-root ./third_party
    """
    mirror = Mirror.from_file(config_path(config_file), mirror_root_path(mirror_root))
    mirror.mirror_all(only)


@main.command(name="list")
@click.option("--config-file", "--config", "-c", default=os.fspath(MIRROR_FILE))
@check_for_errors
def list_targets(config_file: str) -> None:
    """List the configured targets and the module path each one is mirrored to.

    \b
    Example:
    apimirror list --config ./apimirror.yaml
    """
    config = Parser.parse_file(config_path(config_file))
    for target in config.targets:
        click.echo(
            f"{target.slug}\t{target.repo.repo}\t{target.revision}\t{config.module_path(target)}"
        )
