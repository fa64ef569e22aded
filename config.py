#!/usr/bin/env python3
"""Configuration dataclasses for copy-github-to-github."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

# Basic-auth username used for git over HTTPS; the token is the password.
GIT_USERNAME = "git"

PUBLIC_HOST = "github.com"
PUBLIC_API_URL = "https://api.github.com"


class Visibility(Enum):
    """Enumeration for repository visibility levels."""
    PUBLIC = "public"
    INTERNAL = "internal"
    PRIVATE = "private"


class FailurePolicy(Enum):
    """What a pass does when one repository fails to mirror."""
    CONTINUE = "continue"
    FAIL_FAST = "fail-fast"


@dataclass(frozen=True)
class SourceConfig:
    """Source-side configuration."""
    url: str
    token: str


@dataclass(frozen=True)
class TargetConfig:
    """Target-side configuration."""
    url: str
    token: str
    visibility: Visibility = Visibility.PUBLIC


@dataclass(frozen=True)
class GitOperationConfig:
    """Git operation configuration."""
    clone_temp_dir: Optional[str] = None
    keep_clone: bool = False
    timeout_s: Optional[float] = None


@dataclass(frozen=True)
class RunConfig:
    """Run loop configuration."""
    every_s: float = 0.0
    failure_policy: FailurePolicy = FailurePolicy.CONTINUE


@dataclass(frozen=True)
class MirrorConfig:
    """Configuration for a single mirror operation."""
    source_token: str
    target_token: str
    visibility: Visibility
    git: GitOperationConfig


@dataclass(frozen=True)
class Config:
    """Main configuration for a GitHub-to-GitHub copy."""
    source: SourceConfig
    target: TargetConfig
    git: GitOperationConfig
    run: RunConfig
    print_systemd_unit: bool = False
    # Token variables read from the environment rather than flags
    token_env_vars: Tuple[str, ...] = ()

    def mirror_config(self) -> MirrorConfig:
        return MirrorConfig(
            source_token=self.source.token,
            target_token=self.target.token,
            visibility=self.target.visibility,
            git=self.git,
        )
