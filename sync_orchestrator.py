#!/usr/bin/env python3
"""Main orchestrator for copying GitHub repositories between accounts."""

from __future__ import annotations

import signal
import threading
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from config import Config, FailurePolicy
from errors import MirrorToolError
from github_source import GitHubSource
from github_target import GitHubTarget
from logging_utils import Logger
from url_resolver import RepositoryRef, map_target, resolve
from utils import format_duration

# Exit codes
EXIT_SUCCESS = 0
EXIT_EXECUTION_ERROR = 1


@dataclass
class RepositoryFailure:
    repository: RepositoryRef
    destination: Optional[str]
    error: MirrorToolError


@dataclass
class PassResult:
    """Outcome of one pass over every source repository."""
    mirrored: List[Tuple[RepositoryRef, str]] = field(default_factory=list)
    failures: List[RepositoryFailure] = field(default_factory=list)
    error: Optional[MirrorToolError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and not self.failures

    @property
    def exit_code(self) -> int:
        return EXIT_SUCCESS if self.ok else EXIT_EXECUTION_ERROR


def install_interrupt_handler(cancel_event: threading.Event) -> None:
    """Make SIGINT request cancellation at the next interval boundary."""

    def _handler(signum, _frame) -> None:
        Logger.warn("interrupt received, stopping after the current pass")
        cancel_event.set()

    signal.signal(signal.SIGINT, _handler)


class SyncOrchestrator:
    def __init__(
        self,
        cfg: Config,
        source: Optional[GitHubSource] = None,
        target: Optional[GitHubTarget] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        self.cfg = cfg
        self.source = source or GitHubSource(cfg.source.token)
        self.target = target or GitHubTarget(cfg.mirror_config())
        self.cancel_event = cancel_event or threading.Event()

    @property
    def fail_fast(self) -> bool:
        return self.cfg.run.failure_policy == FailurePolicy.FAIL_FAST

    def run(self) -> int:
        """Run passes until done; returns the process exit code."""
        every_s = self.cfg.run.every_s
        pass_number = 0
        while True:
            pass_number += 1
            try:
                result = self.run_pass()
            except Exception as e:
                Logger.error(f"unexpected error: {e}")
                return EXIT_EXECUTION_ERROR

            if every_s <= 0:
                return result.exit_code
            if not result.ok and self.fail_fast:
                return EXIT_EXECUTION_ERROR

            Logger.info(
                f"pass {pass_number} finished, next pass in {format_duration(every_s)}"
            )
            if self.cancel_event.wait(every_s):
                Logger.info("cancelled, exiting")
                return result.exit_code

    def run_pass(self) -> PassResult:
        result = PassResult()
        source_url = self.cfg.source.url

        try:
            repos = self._discover(source_url)
        except MirrorToolError as e:
            Logger.error(f"failed to list repos: {e}")
            result.error = e
            return result

        Logger.info(f"copying {len(repos)} repos")
        for repo in repos:
            destination = None
            try:
                destination = map_target(repo, self.cfg.target.url)
                Logger.info(f"copying {repo.url!r} to {destination!r}...")
                self.target.mirror(repo.url, destination)
                result.mirrored.append((repo, destination))
            except MirrorToolError as e:
                Logger.error(f"failed to copy {repo.url!r}: {e}")
                result.failures.append(RepositoryFailure(repo, destination, e))
                if self.fail_fast:
                    break

        self._report(result, len(repos))
        return result

    def _discover(self, source_url: str) -> List[RepositoryRef]:
        resolved = resolve(source_url)
        if resolved.is_repository:
            return [RepositoryRef(name=resolved.repository_name, url=source_url)]
        Logger.info(f"listing repos for URL: {source_url}")
        return self.source.list_repositories(source_url)

    def _report(self, result: PassResult, total: int) -> None:
        if result.ok:
            Logger.success(f"copy complete: {len(result.mirrored)}/{total} repos")
            return

        skipped = total - len(result.mirrored) - len(result.failures)
        Logger.error(
            f"copy finished with errors: {len(result.mirrored)} copied, "
            f"{len(result.failures)} failed, {skipped} skipped"
        )
        for failure in result.failures:
            Logger.error(f"  {failure.repository.url}: {failure.error}")
