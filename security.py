#!/usr/bin/env python3
"""Security validation utilities for copy-github-to-github."""

import os
import re
from typing import List, Optional, Set


class SecurityValidator:
    """Security validation utilities for input sanitization and validation."""

    MAX_URL_LENGTH = 2048
    MAX_PATH_LENGTH = 500

    # Secrets shorter than this are not redacted by value (too many false hits)
    MIN_SECRET_LENGTH = 4

    _secrets: Set[str] = set()

    @classmethod
    def register_secret(cls, secret: Optional[str]) -> None:
        """Redact this exact value from every future log line."""
        if secret and len(secret) >= cls.MIN_SECRET_LENGTH:
            cls._secrets.add(secret)

    @classmethod
    def clear_secrets(cls) -> None:
        cls._secrets.clear()

    @classmethod
    def validate_url(cls, url: str, allowed_schemes: Optional[List[str]] = None) -> str:
        """Validate URL for security."""
        if not url or not isinstance(url, str):
            raise ValueError("URL must be a non-empty string")

        if len(url) > cls.MAX_URL_LENGTH:
            raise ValueError(f"URL exceeds maximum length of {cls.MAX_URL_LENGTH}")

        # Check for null bytes and control characters
        if "\x00" in url or any(ord(c) < 32 for c in url):
            raise ValueError("URL contains null bytes or control characters")

        allowed = allowed_schemes or ["https", "http"]
        scheme = url.split("://")[0].lower() if "://" in url else ""
        if scheme not in allowed:
            raise ValueError(f"URL must use one of the schemes: {allowed}")

        if re.match(r"^[a-z]+://[^/@]+@", url, flags=re.IGNORECASE):
            raise ValueError("URL must not embed credentials; use the token flags")

        return url

    @classmethod
    def validate_file_path(cls, path: str) -> str:
        """Validate file path for security."""
        if not path or not isinstance(path, str):
            raise ValueError("File path must be a non-empty string")

        if len(path) > cls.MAX_PATH_LENGTH:
            raise ValueError(
                f"File path exceeds maximum length of {cls.MAX_PATH_LENGTH}"
            )

        if "\x00" in path:
            raise ValueError("File path contains null bytes")

        if ".." in path.split(os.sep):
            raise ValueError("File path contains path traversal sequences")

        return os.path.normpath(path)

    @classmethod
    def sanitize_for_logging(cls, message: str) -> str:
        """Sanitize message for safe logging by removing potential credentials."""
        if not message:
            return message

        sanitized = str(message)
        for secret in cls._secrets:
            sanitized = sanitized.replace(secret, "[REDACTED]")

        # Patterns to redact
        patterns = [
            (r"https?://[^:/@\s]+:[^@\s]+@", "https://[REDACTED]@"),  # URLs with credentials
            (r"token\s*[=:]\s*[^\s]+", "token=[REDACTED]"),  # Token assignments
            (r"password\s*[=:]\s*[^\s]+", "password=[REDACTED]"),  # Password assignments
            (r"github_pat_[A-Za-z0-9_]+", "[GITHUB_TOKEN_REDACTED]"),  # Fine-grained tokens
            (r"gh[pousr]_[A-Za-z0-9_]+", "[GITHUB_TOKEN_REDACTED]"),  # Classic tokens
        ]

        for pattern, replacement in patterns:
            sanitized = re.sub(pattern, replacement, sanitized, flags=re.IGNORECASE)

        return sanitized
