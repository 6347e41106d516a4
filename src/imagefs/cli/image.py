"""Image commands for the imagefs CLI: find, hash and scan."""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Callable
from typing import Any

import click

from imagefs.cli.exit_codes import ExitCode
from imagefs.cli.output import CLIResult, error_exit, success_output, warning_output
from imagefs.config.models import ScanConfig
from imagefs.core.digests import is_supported
from imagefs.docker import DockerOptions, DockerRunner
from imagefs.exceptions import CommandError, DockerNotAvailableError
from imagefs.scanner import (
    BinaryFileData,
    BinaryHasher,
    FindGlobsResult,
    Globs,
    HashReport,
    ImageScanner,
)

logger = logging.getLogger(__name__)


def _docker_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the docker connection options shared by image commands."""
    decorators = [
        click.option("--host", "docker_host", default=None, help="Docker daemon host."),
        click.option("--tlsverify", "tls_verify", default=None, help="Verify TLS."),
        click.option("--tlscert", "tls_cert", default=None, help="TLS certificate."),
        click.option(
            "--tlscacert", "tls_ca_cert", default=None, help="TLS CA certificate."
        ),
        click.option("--tlskey", "tls_key", default=None, help="TLS key."),
        click.option(
            "--json", "json_output", is_flag=True, help="Output results as JSON."
        ),
    ]
    for decorator in reversed(decorators):
        func = decorator(func)
    return func


def _glob_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach glob and scope options used by find and scan."""
    decorators = [
        click.option(
            "--manifest-glob",
            "manifest_globs",
            multiple=True,
            help="Glob for manifest files (repeatable).",
        ),
        click.option(
            "--binary-glob",
            "binary_globs",
            multiple=True,
            help="Glob for binary files (repeatable).",
        ),
        click.option(
            "--exclude",
            "exclusion_globs",
            multiple=True,
            help="Glob for paths to ignore (repeatable).",
        ),
        click.option("--path", "scan_path", default="/", help="Directory to scan."),
        click.option(
            "--recursive/--no-recursive",
            default=True,
            help="Scan sub-directories (default: recursive).",
        ),
    ]
    for decorator in reversed(decorators):
        func = decorator(func)
    return func


def _handle_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    """Map imagefs exceptions to CLI exit codes."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        json_output = kwargs.get("json_output", False)
        try:
            return func(*args, **kwargs)
        except DockerNotAvailableError as e:
            error_exit(str(e), ExitCode.TOOL_NOT_AVAILABLE, json_output)
        except CommandError as e:
            logger.debug("Command failed", exc_info=True)
            error_exit(str(e), ExitCode.OPERATION_FAILED, json_output)
        except KeyboardInterrupt:
            error_exit("Interrupted", ExitCode.INTERRUPTED, json_output)

    return wrapper


def _make_runner(
    ctx: click.Context,
    image: str,
    docker_host: str | None,
    tls_verify: str | None,
    tls_cert: str | None,
    tls_ca_cert: str | None,
    tls_key: str | None,
) -> DockerRunner:
    config: ScanConfig = ctx.obj["config"].scan
    options = DockerOptions(
        host=docker_host,
        tls_verify=tls_verify,
        tls_cert=tls_cert,
        tls_ca_cert=tls_ca_cert,
        tls_key=tls_key,
    )
    return DockerRunner(image, options, config)


def _find_result_data(result: FindGlobsResult) -> dict[str, Any]:
    return {
        "manifest_files": list(result.manifest_files),
        "binary_files": list(result.binary_files),
    }


def _record_data(record: BinaryFileData) -> dict[str, str]:
    return {
        "name": record.name,
        "path": record.path,
        "hash_type": record.hash_type,
        "hash": record.hash,
    }


def _format_find(result: FindGlobsResult) -> str:
    lines = [f"manifest  {path}" for path in result.manifest_files]
    lines.extend(f"binary    {path}" for path in result.binary_files)
    if not lines:
        return "No matching files found."
    return "\n".join(lines)


def _format_hashes(report: HashReport) -> str:
    if not report.records:
        return "No files hashed."
    return "\n".join(
        f"{record.hash}  {record.full_path}" for record in report.records
    )


def _check_hash_type(hash_type: str | None, json_output: bool) -> None:
    if hash_type is not None and not is_supported(hash_type):
        error_exit(
            f"Unsupported hash type: {hash_type}", ExitCode.CONFIG_ERROR, json_output
        )


@click.command("find")
@click.argument("image")
@_glob_options
@_docker_options
@click.pass_context
@_handle_errors
def find_command(
    ctx: click.Context,
    image: str,
    manifest_globs: tuple[str, ...],
    binary_globs: tuple[str, ...],
    exclusion_globs: tuple[str, ...],
    scan_path: str,
    recursive: bool,
    docker_host: str | None,
    tls_verify: str | None,
    tls_cert: str | None,
    tls_ca_cert: str | None,
    tls_key: str | None,
    json_output: bool,
) -> None:
    """Find manifest and binary files in IMAGE."""
    runner = _make_runner(
        ctx, image, docker_host, tls_verify, tls_cert, tls_ca_cert, tls_key
    )
    scanner = ImageScanner(runner, runner.config)
    result = asyncio.run(
        scanner.find_globs(
            Globs(manifest_globs, binary_globs),
            exclusion_globs,
            path=scan_path,
            recursive=recursive,
        )
    )
    success_output(
        CLIResult(True, _format_find(result), _find_result_data(result)),
        json_output,
    )


@click.command("hash")
@click.argument("image")
@click.argument("files", nargs=-1, required=True)
@click.option("--hash-type", default=None, help="Digest algorithm (default: sha1).")
@_docker_options
@click.pass_context
@_handle_errors
def hash_command(
    ctx: click.Context,
    image: str,
    files: tuple[str, ...],
    hash_type: str | None,
    docker_host: str | None,
    tls_verify: str | None,
    tls_cert: str | None,
    tls_ca_cert: str | None,
    tls_key: str | None,
    json_output: bool,
) -> None:
    """Hash FILES inside IMAGE by streaming their contents."""
    _check_hash_type(hash_type, json_output)
    runner = _make_runner(
        ctx, image, docker_host, tls_verify, tls_cert, tls_ca_cert, tls_key
    )
    hasher = BinaryHasher(runner, runner.config)
    report = asyncio.run(hasher.hash_files(files, hash_type))

    if report.dropped:
        warning_output(
            f"{report.dropped_count} file(s) could not be hashed", json_output
        )
    success_output(
        CLIResult(
            True,
            _format_hashes(report),
            {
                "binary_files": [_record_data(r) for r in report.records],
                "dropped_files": report.dropped,
            },
        ),
        json_output,
    )


async def _scan(
    runner: DockerRunner,
    globs: Globs,
    exclusion_globs: tuple[str, ...],
    scan_path: str,
    recursive: bool,
    hash_type: str | None,
) -> tuple[FindGlobsResult, HashReport]:
    scanner = ImageScanner(runner, runner.config)
    found = await scanner.find_globs(
        globs, exclusion_globs, path=scan_path, recursive=recursive
    )
    report = await BinaryHasher(runner, runner.config).hash_files(
        found.binary_files, hash_type
    )
    return found, report


@click.command("scan")
@click.argument("image")
@_glob_options
@click.option("--hash-type", default=None, help="Digest algorithm (default: sha1).")
@_docker_options
@click.pass_context
@_handle_errors
def scan_command(
    ctx: click.Context,
    image: str,
    manifest_globs: tuple[str, ...],
    binary_globs: tuple[str, ...],
    exclusion_globs: tuple[str, ...],
    scan_path: str,
    recursive: bool,
    hash_type: str | None,
    docker_host: str | None,
    tls_verify: str | None,
    tls_cert: str | None,
    tls_ca_cert: str | None,
    tls_key: str | None,
    json_output: bool,
) -> None:
    """Find files in IMAGE and hash the binaries."""
    _check_hash_type(hash_type, json_output)
    runner = _make_runner(
        ctx, image, docker_host, tls_verify, tls_cert, tls_ca_cert, tls_key
    )
    found, report = asyncio.run(
        _scan(
            runner,
            Globs(manifest_globs, binary_globs),
            exclusion_globs,
            scan_path,
            recursive,
            hash_type,
        )
    )

    if report.dropped:
        warning_output(
            f"{report.dropped_count} binary file(s) could not be hashed", json_output
        )

    message = _format_find(found)
    if report.records:
        message = f"{message}\n\n{_format_hashes(report)}"
    data = _find_result_data(found)
    data["hashes"] = [_record_data(r) for r in report.records]
    data["dropped_files"] = report.dropped
    success_output(CLIResult(True, message, data), json_output)
