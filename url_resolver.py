#!/usr/bin/env python3
"""Parsing of GitHub URLs, API host routing and target URL mapping."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple
from urllib.parse import SplitResult, quote, unquote, urlsplit, urlunsplit

from config import PUBLIC_API_URL, PUBLIC_HOST
from errors import InvalidURL


@dataclass(frozen=True)
class RepositoryRef:
    """A repository discovered on the source side."""
    name: str
    url: str


@dataclass(frozen=True)
class HostTarget:
    """Components of a hosting URL: scheme, host and owner/repository path."""
    scheme: str
    host: str
    netloc: str
    organization: str
    repository_name: Optional[str] = None

    @property
    def is_repository(self) -> bool:
        return self.repository_name is not None


def _split(url: str) -> Tuple[SplitResult, List[str]]:
    try:
        parts = urlsplit(url.strip())
        host = parts.hostname
    except (ValueError, AttributeError) as e:
        raise InvalidURL(f"failed to parse url {url!r}: {e}") from e

    if parts.scheme.lower() not in ("http", "https") or not host:
        raise InvalidURL(f"url {url!r} must be an absolute http(s) url")

    segments = [unquote(segment) for segment in parts.path.split("/") if segment]
    return parts, segments


def resolve(url: str) -> HostTarget:
    """Parse an organization or repository URL.

    One path segment is an organization, two segments a single repository.
    Anything else raises InvalidURL.
    """
    parts, segments = _split(url)
    if not segments or len(segments) > 2:
        raise InvalidURL(
            f"url {url!r} must point to an organization or a repository, "
            f"got {len(segments)} path segments"
        )
    return HostTarget(
        scheme=parts.scheme.lower(),
        host=parts.hostname.lower(),
        netloc=parts.netloc,
        organization=segments[0],
        repository_name=segments[1] if len(segments) == 2 else None,
    )


def is_public_host(host: str) -> bool:
    """True when host is the public GitHub domain (case-insensitive)."""
    return (host or "").lower() == PUBLIC_HOST


def api_base_url(target: HostTarget) -> str:
    """REST endpoint for the host: api.github.com or a GitHub Enterprise /api/v3."""
    if is_public_host(target.host):
        return PUBLIC_API_URL
    netloc = target.netloc.rsplit("@", 1)[-1].lower()
    return f"{target.scheme}://{netloc}/api/v3"


def _encode(segment: str) -> str:
    return quote(segment, safe="-._~")


def map_target(repo: RepositoryRef, target_org_url: str) -> str:
    """Destination URL for repo under the organization of target_org_url.

    Only the owner segment changes; the repository name is kept verbatim.
    """
    parts, segments = _split(target_org_url)
    if not segments:
        raise InvalidURL(f"target url {target_org_url!r} has no organization")

    path = f"/{_encode(segments[0])}/{_encode(repo.name)}"
    return urlunsplit((parts.scheme, parts.netloc, path, "", ""))


def split_repository_url(url: str) -> HostTarget:
    """Parse a destination URL that must name exactly owner/repository."""
    target = resolve(url)
    if not target.is_repository:
        raise InvalidURL(f"url {url!r} does not name a repository")
    return target
