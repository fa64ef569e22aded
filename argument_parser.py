#!/usr/bin/env python3
"""Command line argument parsing and configuration building."""

from __future__ import annotations

import argparse
import os
import sys
from typing import List, NoReturn, Optional, Sequence

from config import (Config, FailurePolicy, GitOperationConfig, RunConfig,
                    SourceConfig, TargetConfig, Visibility)
from logging_utils import Logger
from security import SecurityValidator
from utils import parse_duration

# Exit codes
EXIT_VALIDATION_ERROR = 1

SOURCE_TOKEN_ENV = "SRC_GITHUB_TOKEN"
TARGET_TOKEN_ENV = "TGT_GITHUB_TOKEN"


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser whose usage errors exit with the validation exit code."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        Logger.error(f"error: {message}")
        sys.exit(EXIT_VALIDATION_ERROR)


def _create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = _ArgumentParser(
        prog="copy-github-to-github",
        description="Copy a GitHub repo or a full organization between accounts.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
        epilog="""
Examples:
  %(prog)s -src-token <TOKEN> -src-url https://github.com/ORG/REPO \\
           -tgt-token <TOKEN> -tgt-url https://github.enterprise.com/ORG
  %(prog)s -src-token <TOKEN> -src-url https://github.com/ORG \\
           -tgt-token <TOKEN> -tgt-url https://github.enterprise.com/ORG \\
           -tgt-visibility internal -every 1h
  %(prog)s ... -every 30m -print-systemd-unit > copy-github.service
        """,
    )
    parser.add_argument(
        "-h", "-help", "--help", action="help", help="Show this help message and exit"
    )
    return parser


def _add_source_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-src-token",
        "--src-token",
        dest="src_token",
        help=f"Personal access token for the source (or set {SOURCE_TOKEN_ENV})",
    )
    parser.add_argument(
        "-src-url",
        "--src-url",
        dest="src_url",
        help="URL of the source organization or repository, "
        "e.g. https://github.com/org or https://github.com/org/repo",
    )


def _add_target_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-tgt-token",
        "--tgt-token",
        dest="tgt_token",
        help=f"Personal access token for the target (or set {TARGET_TOKEN_ENV})",
    )
    parser.add_argument(
        "-tgt-url",
        "--tgt-url",
        dest="tgt_url",
        help="URL of the target organization to push to, "
        "e.g. https://github.enterprise.com/org",
    )
    parser.add_argument(
        "-tgt-visibility",
        "--tgt-visibility",
        dest="tgt_visibility",
        choices=[visibility.value for visibility in Visibility],
        default=Visibility.PUBLIC.value,
        help="Visibility for created target repos (default: public)",
    )


def _add_behavior_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-every",
        "--every",
        dest="every",
        default="0",
        help="Repeat the copy at this interval, e.g. 30m or 1h (default: run once)",
    )
    parser.add_argument(
        "-print-systemd-unit",
        "--print-systemd-unit",
        action="store_true",
        dest="print_systemd_unit",
        help="Print a systemd unit running this command and exit",
    )
    parser.add_argument(
        "--fail-fast",
        action="store_true",
        dest="fail_fast",
        help="Stop at the first repository that fails to copy",
    )
    parser.add_argument(
        "--keep-clone",
        action="store_true",
        dest="keep_clone",
        help="Leave local clones on disk after copying (for debugging)",
    )
    parser.add_argument(
        "--clone-temp-dir",
        dest="clone_temp_dir",
        help="Directory for temporary clones (default: system temp dir)",
    )
    parser.add_argument(
        "--git-timeout",
        dest="git_timeout_s",
        type=float,
        help="Seconds before a git clone or push is aborted (default: no limit)",
    )


def _missing_params(args, src_token: Optional[str], tgt_token: Optional[str]) -> List[str]:
    errors = []
    if not src_token:
        errors.append("Missing src-token flag")
    if not args.src_url:
        errors.append("Missing src-url flag")
    if not tgt_token:
        errors.append("Missing tgt-token flag")
    if not args.tgt_url:
        errors.append("Missing tgt-url flag")
    return errors


def _validate_parsed_arguments(args) -> List[str]:
    """Validate URLs, paths and numbers; returns the problems found."""
    errors = []
    for flag, value in (("src-url", args.src_url), ("tgt-url", args.tgt_url)):
        if value:
            try:
                SecurityValidator.validate_url(value, ["https", "http"])
            except ValueError as e:
                errors.append(f"Invalid {flag}: {e}")

    try:
        parse_duration(args.every)
    except ValueError as e:
        errors.append(f"Invalid every: {e}")

    if args.clone_temp_dir:
        try:
            SecurityValidator.validate_file_path(args.clone_temp_dir)
        except ValueError as e:
            errors.append(f"Invalid clone-temp-dir: {e}")

    if args.git_timeout_s is not None and args.git_timeout_s <= 0:
        errors.append("Invalid git-timeout: must be a positive number of seconds")
    return errors


def parse_arguments(argv: Optional[Sequence[str]] = None) -> Config:
    """Parse command line arguments and return configuration object."""
    parser = _create_argument_parser()
    _add_source_arguments(parser)
    _add_target_arguments(parser)
    _add_behavior_arguments(parser)

    args = parser.parse_args(argv)

    src_token = args.src_token or os.getenv(SOURCE_TOKEN_ENV)
    tgt_token = args.tgt_token or os.getenv(TARGET_TOKEN_ENV)

    errors = _missing_params(args, src_token, tgt_token)
    errors.extend(_validate_parsed_arguments(args))
    if errors:
        Logger.error("Invalid or missing params:\n -" + "\n -".join(errors))
        sys.exit(EXIT_VALIDATION_ERROR)

    SecurityValidator.register_secret(src_token)
    SecurityValidator.register_secret(tgt_token)

    return Config(
        source=SourceConfig(url=args.src_url, token=src_token),
        target=TargetConfig(
            url=args.tgt_url,
            token=tgt_token,
            visibility=Visibility(args.tgt_visibility),
        ),
        git=GitOperationConfig(
            clone_temp_dir=(
                SecurityValidator.validate_file_path(args.clone_temp_dir)
                if args.clone_temp_dir
                else None
            ),
            keep_clone=args.keep_clone,
            timeout_s=args.git_timeout_s,
        ),
        run=RunConfig(
            every_s=parse_duration(args.every),
            failure_policy=(
                FailurePolicy.FAIL_FAST if args.fail_fast else FailurePolicy.CONTINUE
            ),
        ),
        print_systemd_unit=args.print_systemd_unit,
        token_env_vars=tuple(
            name
            for name, flag_value in (
                (SOURCE_TOKEN_ENV, args.src_token),
                (TARGET_TOKEN_ENV, args.tgt_token),
            )
            if not flag_value
        ),
    )
