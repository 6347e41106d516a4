"""Process exit codes returned by imagefs commands.

Codes are grouped by decade so scripts can test ranges: 1-9 for generic
failures, 10-19 for bad configuration or input, 30-39 for a missing docker
client, 40-49 for docker commands that ran and failed.
"""

from enum import IntEnum


class ExitCode(IntEnum):
    SUCCESS = 0
    GENERAL_ERROR = 1
    # Ctrl-C during a scan
    INTERRUPTED = 2
    # invalid config file, environment or --hash-type
    CONFIG_ERROR = 11
    # docker client missing from PATH
    TOOL_NOT_AVAILABLE = 30
    # docker exited non-zero for a command that must succeed
    OPERATION_FAILED = 40
