"""Tests for GitHubSource repository discovery."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock, call, patch

import github
import pytest

from errors import ListError
from github_source import PAGE_SIZE, GitHubSource, make_client
from url_resolver import RepositoryRef, resolve


def _repo(name: str) -> SimpleNamespace:
    return SimpleNamespace(name=name, html_url=f'https://github.com/Acme/{name}')


def _make_source(pages) -> tuple:
    api = MagicMock()
    paginated = api.get_organization.return_value.get_repos.return_value
    paginated.get_page.side_effect = lambda index: pages[index]

    source = GitHubSource('src-token', client_factory=lambda _target, _token: api)
    source.rate_limiter.wait_if_needed = lambda *_args, **_kwargs: None
    return source, api, paginated


def test_list_repositories_pages_until_empty() -> None:
    """Pages are fetched from index 0 upward and stop at the first empty page."""
    source, api, paginated = _make_source([[_repo('a'), _repo('b')], [_repo('c')], []])

    repos = source.list_repositories('https://github.com/acme')

    assert [repo.name for repo in repos] == ['a', 'b', 'c']
    assert paginated.get_page.call_args_list == [call(0), call(1), call(2)]
    api.get_organization.assert_called_once_with('acme')
    api.get_organization.return_value.get_repos.assert_called_once_with(
        sort='updated', direction='desc'
    )


def test_list_repositories_keeps_api_order_and_duplicates() -> None:
    """No sorting and no de-duplication is applied."""
    source, _api, _paginated = _make_source(
        [[_repo('zeta'), _repo('alpha')], [_repo('alpha')], []]
    )

    repos = source.list_repositories('https://github.com/acme')

    assert [repo.name for repo in repos] == ['zeta', 'alpha', 'alpha']


def test_list_repositories_uses_canonical_api_url() -> None:
    source, _api, _paginated = _make_source([[_repo('a')], []])

    repos = source.list_repositories('https://GITHUB.com/acme/')

    assert repos == [RepositoryRef(name='a', url='https://github.com/Acme/a')]


def test_list_repositories_empty_organization() -> None:
    source, _api, paginated = _make_source([[]])

    assert source.list_repositories('https://github.com/acme') == []
    paginated.get_page.assert_called_once_with(0)


def test_list_repositories_error_on_later_page() -> None:
    """An API error on any page fails the whole listing."""
    source, _api, paginated = _make_source([])
    paginated.get_page.side_effect = [
        [_repo('a')],
        github.GithubException(502, {'message': 'Server Error'}, None),
    ]

    with pytest.raises(ListError):
        source.list_repositories('https://github.com/acme')


def test_list_repositories_bad_credentials() -> None:
    source, api, _paginated = _make_source([])
    api.get_organization.side_effect = github.BadCredentialsException(
        401, {'message': 'Bad credentials'}, None
    )

    with pytest.raises(ListError, match='authentication failed'):
        source.list_repositories('https://github.com/acme')


def test_list_repositories_invalid_url() -> None:
    source, api, _paginated = _make_source([])

    with pytest.raises(ListError):
        source.list_repositories('https://github.com/')
    api.get_organization.assert_not_called()


@patch('github_source.github.Github')
def test_make_client_routes_by_host(mock_github: MagicMock) -> None:
    """Public GitHub uses api.github.com; other hosts use their /api/v3."""
    make_client(resolve('https://github.com/acme'), 'tok')
    assert mock_github.call_args.kwargs['base_url'] == 'https://api.github.com'
    assert mock_github.call_args.kwargs['per_page'] == PAGE_SIZE

    make_client(resolve('https://git.enterprise.test/widgets'), 'tok')
    assert mock_github.call_args.kwargs['base_url'] == 'https://git.enterprise.test/api/v3'
