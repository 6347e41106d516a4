"""Writing command results, warnings and errors to the terminal.

Every command supports --json. In JSON mode stdout carries exactly one JSON
document and warnings are dropped, so the output can be piped to jq.
"""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field
from typing import Any, NoReturn

import click

from imagefs.cli.exit_codes import ExitCode


@dataclass
class CLIResult:
    """Outcome of a command: a human summary plus data for JSON mode."""

    success: bool
    message: str
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def status(self) -> str:
        return "completed" if self.success else "failed"

    def to_json(self) -> str:
        document: dict[str, Any] = {"status": self.status, "message": self.message}
        document.update(self.data)
        return json.dumps(document, indent=2)


def _describe_code(code: ExitCode | int) -> tuple[str, int]:
    if isinstance(code, ExitCode):
        return code.name, code.value
    return "UNKNOWN_ERROR", int(code)


def error_exit(
    message: str,
    code: ExitCode | int,
    json_output: bool = False,
) -> NoReturn:
    """Report an error on stderr and exit with code.

    In JSON mode the error is written as
    {"status": "failed", "error": {"code": <name>, "message": <message>}}.
    """
    code_name, exit_value = _describe_code(code)
    if json_output:
        payload = {"status": "failed", "error": {"code": code_name, "message": message}}
        click.echo(json.dumps(payload), err=True)
    else:
        click.echo(f"Error: {message}", err=True)
    sys.exit(exit_value)


def success_output(result: CLIResult, json_output: bool = False) -> None:
    click.echo(result.to_json() if json_output else result.message)


def warning_output(message: str, json_output: bool = False) -> None:
    """Print a warning on stderr. Nothing is printed in JSON mode."""
    if json_output:
        return
    click.echo(f"Warning: {message}", err=True)
