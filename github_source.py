#!/usr/bin/env python3
"""GitHub API wrapper for discovering the repositories of an organization."""

from __future__ import annotations

from typing import Callable, List, Optional

import github
import requests

from errors import InvalidURL, ListError
from logging_utils import Logger
from url_resolver import HostTarget, RepositoryRef, api_base_url, resolve
from utils import RateLimiter

PAGE_SIZE = 100


def make_client(target: HostTarget, token: str, per_page: int = PAGE_SIZE) -> github.Github:
    """Build a PyGithub client routed to github.com or an Enterprise host."""
    auth = github.Auth.Token(token)
    base_url = api_base_url(target)
    Logger.debug(f"github API endpoint: {base_url}")
    return github.Github(base_url=base_url, auth=auth, per_page=per_page)


class GitHubSource:
    """Wrapper around the GitHub API to enumerate organization repositories."""

    def __init__(
        self,
        token: str,
        client_factory: Optional[Callable[[HostTarget, str], github.Github]] = None,
    ) -> None:
        self.token = token
        self.client_factory = client_factory or make_client
        self.rate_limiter = RateLimiter(
            max_requests_per_minute=50
        )  # GitHub's standard rate limit

    def list_repositories(self, org_url: str) -> List[RepositoryRef]:
        """Return every repository of the organization, most recently updated first.

        Pages are requested by index starting at 0 until an empty page comes
        back. Order is the API's; nothing is sorted or de-duplicated here.
        """
        try:
            target = resolve(org_url)
        except InvalidURL as e:
            raise ListError(f"failed to list repos: {e}") from e

        Logger.info(f"discovering repositories under: {target.organization}")
        api = self.client_factory(target, self.token)

        repos: List[RepositoryRef] = []
        try:
            self.rate_limiter.wait_if_needed("GitHub API")
            org = api.get_organization(target.organization)
            paginated = org.get_repos(sort="updated", direction="desc")

            page_index = 0
            while True:
                self.rate_limiter.wait_if_needed("GitHub API")
                page = paginated.get_page(page_index)
                if not page:
                    break
                for repo in page:
                    repos.append(RepositoryRef(name=repo.name, url=repo.html_url))
                    Logger.debug(f"found: {repo.html_url}")
                page_index += 1
        except github.BadCredentialsException as e:
            raise ListError(f"authentication failed (github): {e}") from e
        except github.GithubException as e:
            raise ListError(
                f"failed to list repos of '{target.organization}': {e}"
            ) from e
        except requests.RequestException as e:
            raise ListError(f"failed to contact github api: {e}") from e

        Logger.info(f"found {len(repos)} repositories to process")
        return repos
