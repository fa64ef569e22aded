#!/usr/bin/env python3
"""Exception hierarchy for copy-github-to-github."""

from __future__ import annotations


class MirrorToolError(Exception):
    """Base class for every error raised by the copy pipeline."""


class InvalidURL(MirrorToolError):
    """A hosting URL is malformed or has an unexpected shape."""


class ListError(MirrorToolError):
    """Enumerating the repositories of an organization failed."""


class MirrorError(MirrorToolError):
    """Mirroring a single repository failed."""


class StagingError(MirrorError):
    """The local staging directory could not be created."""


class CloneError(MirrorError):
    """Cloning the source repository failed."""


class CreateError(MirrorError):
    """Creating the target repository failed for a reason other than it existing."""


class PushError(MirrorError):
    """Pushing to the target repository failed."""
