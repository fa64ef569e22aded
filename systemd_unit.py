#!/usr/bin/env python3
"""systemd unit generation for running the copy on a schedule."""

from __future__ import annotations

import os
import shlex
import sys
from typing import List, Optional, Sequence

PRINT_UNIT_FLAGS = ("-print-systemd-unit", "--print-systemd-unit")

ENVIRONMENT_FILE = "/etc/copy-github-to-github.env"

UNIT_TEMPLATE = """[Unit]
Description=Copy GitHub repositories between accounts
After=network-online.target
Wants=network-online.target

[Service]
Type=simple
{environment}ExecStart={command}
Restart=on-failure
RestartSec=30

[Install]
WantedBy=multi-user.target
"""


def reconstruct_command(
    argv: Sequence[str], executable: Optional[str] = None
) -> List[str]:
    """Rebuild the current invocation with absolute paths and without the print flag."""
    program = os.path.abspath(argv[0]) if argv else "copy-github-to-github"
    command = [program]
    if executable and program.endswith(".py"):
        command.insert(0, executable)

    command.extend(arg for arg in argv[1:] if arg not in PRINT_UNIT_FLAGS)
    return command


def _environment_lines(env_vars: Sequence[str]) -> str:
    if not env_vars:
        return ""
    return (
        f"# {ENVIRONMENT_FILE} must define: {' '.join(env_vars)}\n"
        f"EnvironmentFile={ENVIRONMENT_FILE}\n"
    )


def render_unit(
    argv: Optional[Sequence[str]] = None, env_vars: Sequence[str] = ()
) -> str:
    """Return unit file text with ExecStart set to the current invocation.

    Tokens that came from the environment are not part of the command line,
    so the unit loads them from an EnvironmentFile instead.
    """
    if argv is None:
        argv = sys.argv
    command = reconstruct_command(argv, executable=sys.executable)
    return UNIT_TEMPLATE.format(
        environment=_environment_lines(env_vars), command=shlex.join(command)
    )
