"""Command line entry point: the `imagefs` click group."""

import logging
from pathlib import Path

import click

from imagefs.cli.exit_codes import ExitCode
from imagefs.cli.output import error_exit
from imagefs.config.models import LOG_LEVELS

logger = logging.getLogger(__name__)

# click may invoke the group callback more than once per process in tests
_logging_ready = False


def _configure_logging(
    config_path: Path | None,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
) -> None:
    """Set up logging once, with --log-* options taking precedence."""
    global _logging_ready
    if _logging_ready:
        return

    from imagefs.config.logging_factory import configure_logging_from_cli

    configure_logging_from_cli(
        config_path=config_path,
        level=log_level,
        file=log_file,
        format="json" if log_json else None,
    )
    _logging_ready = True


@click.group()
@click.version_option(package_name="imagefs")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Read settings from this TOML file instead of ~/.imagefs/config.toml.",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    help="Minimum level of log records to emit.",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write log records to this file (rotated).",
)
@click.option("--log-json", is_flag=True, help="Emit log records as JSON lines.")
@click.pass_context
def main(
    ctx: click.Context,
    config_path: Path | None,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
) -> None:
    """imagefs - Find and fingerprint files inside container images."""
    from imagefs.config import get_config

    obj = ctx.ensure_object(dict)
    try:
        _configure_logging(config_path, log_level, log_file, log_json)
        obj.setdefault("config", None)
        if obj["config"] is None:
            obj["config"] = get_config(config_path=config_path)
    except ValueError as e:
        error_exit(f"Invalid configuration: {e}", ExitCode.CONFIG_ERROR)


def _register_commands() -> None:
    # imagefs.cli.image imports from this package
    from imagefs.cli.image import find_command, hash_command, scan_command

    for command in (find_command, hash_command, scan_command):
        main.add_command(command)


_register_commands()
