#!/usr/bin/env python3
"""GitHub API and git wrapper for mirroring one repository to a target."""

from __future__ import annotations

import os
import shutil
import subprocess
import tempfile
from typing import Callable, Dict, List, Optional

import github
import requests

from config import GIT_USERNAME, MirrorConfig
from errors import CloneError, CreateError, PushError, StagingError
from github_source import make_client
from logging_utils import Logger
from security import SecurityValidator
from url_resolver import HostTarget, api_base_url, split_repository_url
from utils import RateLimiter

ALREADY_EXISTS_MESSAGE = "name already exists on this account"
UP_TO_DATE_MESSAGE = "Everything up-to-date"

# The askpass helper reads credentials from its environment so they never
# touch the disk.
ASKPASS_SCRIPT = """#!/bin/sh
case "$1" in
  *Username*) printf '%s\\n' "$MIRROR_GIT_USERNAME" ;;
  *Password*) printf '%s\\n' "$MIRROR_GIT_PASSWORD" ;;
  *) exit 1 ;;
esac
"""


class GitHubTarget:
    """Clone a source repository and force-push it into a target organization."""

    def __init__(
        self,
        config: MirrorConfig,
        client_factory: Optional[Callable[[HostTarget, str], github.Github]] = None,
    ) -> None:
        self.config = config
        self.client_factory = client_factory or make_client
        self.rate_limiter = RateLimiter(max_requests_per_minute=50)
        self._clients: Dict[str, github.Github] = {}
        self._checked_orgs: Dict[str, bool] = {}

    def mirror(self, source_url: str, target_url: str) -> None:
        """Copy source_url to target_url, creating the target repository if needed.

        Safe to repeat: an existing target repository and an up-to-date push
        both count as success.
        """
        target = split_repository_url(target_url)

        clone_dir = self._create_staging_dir(target.repository_name)
        try:
            self._clone(source_url, clone_dir)
            self.ensure_repository(target, description=f"Mirror of {source_url}")
            self._push(target_url, clone_dir)
            Logger.success(f"copy completed: {target_url}")
        finally:
            if self.config.git.keep_clone:
                Logger.info(f"keeping local clone at {clone_dir}")
            else:
                self._cleanup_staging_dir(clone_dir)

    def _client(self, target: HostTarget) -> github.Github:
        base_url = api_base_url(target)
        if base_url not in self._clients:
            self._clients[base_url] = self.client_factory(
                target, self.config.target_token
            )
        return self._clients[base_url]

    def ensure_repository(self, target: HostTarget, description: str) -> None:
        """Create the target repository; an existing one is left alone."""
        self._preflight_org_access(target)
        api = self._client(target)
        name = target.repository_name
        try:
            self.rate_limiter.wait_if_needed("GitHub API")
            org = api.get_organization(target.organization)
            self.rate_limiter.wait_if_needed("GitHub API")
            org.create_repo(
                name=name,
                description=description,
                visibility=self.config.visibility.value,
            )
            Logger.info(f"created repo: {target.organization}/{name}")
        except github.GithubException as e:
            if self._is_already_exists(e):
                Logger.debug(f"repo already exists: {target.organization}/{name}")
                return
            raise CreateError(
                f"failed to create target repo '{target.organization}/{name}': {e}"
            ) from e
        except requests.RequestException as e:
            raise CreateError(f"failed to contact github api: {e}") from e

    @staticmethod
    def _is_already_exists(error: github.GithubException) -> bool:
        return error.status == 422 and ALREADY_EXISTS_MESSAGE in str(error)

    def _preflight_org_access(self, target: HostTarget) -> None:
        """Warn once per organization when the token cannot see it."""
        key = f"{api_base_url(target)}/orgs/{target.organization}"
        if key in self._checked_orgs:
            return
        self._checked_orgs[key] = True

        headers = {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self.config.target_token}",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        try:
            self.rate_limiter.wait_if_needed("GitHub API")
            response = requests.get(key, headers=headers, timeout=30)
        except requests.RequestException:
            Logger.warn("could not check target organization (request error)")
            return

        if response.status_code == 401:
            Logger.warn(
                "unauthorized (401): target token invalid or not authorized "
                "for the GitHub API"
            )
        elif response.status_code == 403:
            Logger.warn(
                "forbidden (403): target token lacks permission to access "
                f"'{target.organization}' (missing scope or SAML SSO not authorized)"
            )
        elif response.status_code == 404:
            Logger.warn(
                f"not found (404): organization '{target.organization}' does not "
                "exist or is not visible to the target token"
            )
        elif response.status_code != 200:
            Logger.warn(
                f"unexpected response checking organization: {response.status_code}"
            )

    def _create_staging_dir(self, name: Optional[str]) -> str:
        """Create a unique, owner-only directory for the local clone."""
        base_dir = self.config.git.clone_temp_dir
        try:
            if base_dir:
                os.makedirs(base_dir, mode=0o700, exist_ok=True)
            clone_dir = tempfile.mkdtemp(prefix=f"src_repo_{name or ''}_", dir=base_dir)
            os.chmod(clone_dir, 0o700)
        except OSError as e:
            raise StagingError(f"failed to create temp directory: {e}") from e
        Logger.debug(f"staging directory: {clone_dir}")
        return clone_dir

    def _cleanup_staging_dir(self, clone_dir: str) -> None:
        if not os.path.exists(clone_dir):
            return
        try:
            shutil.rmtree(clone_dir)
            Logger.debug("cleaned up staging directory")
        except OSError as e:
            Logger.warn(f"failed to clean up staging directory {clone_dir}: {e}")

    def _git_env(self, token: str, askpass_script: str) -> Dict[str, str]:
        env = os.environ.copy()
        env.update(
            {
                "GIT_ASKPASS": askpass_script,
                "GIT_TERMINAL_PROMPT": "0",
                "MIRROR_GIT_USERNAME": GIT_USERNAME,
                "MIRROR_GIT_PASSWORD": token,
            }
        )
        return env

    @staticmethod
    def _create_askpass_script() -> str:
        fd, path = tempfile.mkstemp(prefix="cgg_askpass_", text=True)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as script:
                script.write(ASKPASS_SCRIPT)
            os.chmod(path, 0o700)
        except OSError:
            os.unlink(path)
            raise
        return path

    def _run_git(
        self, args: List[str], token: str, cwd: Optional[str] = None
    ) -> subprocess.CompletedProcess:
        # Own session: a terminal SIGINT must not reach a running clone or push.
        askpass_script = self._create_askpass_script()
        try:
            return subprocess.run(
                ["git", *args],
                cwd=cwd,
                check=True,
                capture_output=True,
                text=True,
                timeout=self.config.git.timeout_s,
                env=self._git_env(token, askpass_script),
                start_new_session=True,
            )
        finally:
            try:
                os.remove(askpass_script)
            except OSError as error:
                Logger.warn(f"failed to clean up temporary credential helper: {error}")

    @staticmethod
    def _git_output(error: subprocess.CalledProcessError) -> str:
        output = (error.stderr or "") + (error.stdout or "")
        return SecurityValidator.sanitize_for_logging(output.strip())

    def _clone(self, source_url: str, clone_dir: str) -> None:
        Logger.info(f"cloning: {source_url}")
        try:
            self._run_git(
                ["clone", "--bare", source_url, clone_dir],
                self.config.source_token,
            )
        except subprocess.TimeoutExpired as e:
            raise CloneError(f"git clone timed out after {e.timeout}s") from e
        except subprocess.CalledProcessError as e:
            raise CloneError(f"failed to clone: {self._git_output(e)}") from e
        except OSError as e:
            raise CloneError(f"failed to run git: {e}") from e

    def _push(self, target_url: str, clone_dir: str) -> None:
        Logger.info(f"pushing to: {target_url}")
        try:
            result = self._run_git(
                ["push", "--force", "--tags", target_url, "refs/heads/*:refs/heads/*"],
                self.config.target_token,
                cwd=clone_dir,
            )
        except subprocess.TimeoutExpired as e:
            raise PushError(f"git push timed out after {e.timeout}s") from e
        except subprocess.CalledProcessError as e:
            output = self._git_output(e)
            if UP_TO_DATE_MESSAGE in output:
                Logger.info("target already up to date")
                return
            raise PushError(f"failed to push to target: {output}") from e
        except OSError as e:
            raise PushError(f"failed to run git: {e}") from e

        if UP_TO_DATE_MESSAGE in (result.stderr or ""):
            Logger.info("target already up to date")
