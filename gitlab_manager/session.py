# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Session object and the on-disk config file.

The session replaces process-wide bootstrap state (instance URL, API base URL,
active token). It is built once at startup and only replaced through
`Session.reconfigure()`, which returns a new object.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .exceptions import ValidationError

_logger = logging.getLogger(__name__)

DEFAULT_INSTANCE_URL = "https://gitlab.com"
DEFAULT_CONFIG_FILE = "./.gitlab_manager_config.json"
DEFAULT_CACHE_DIR = "./.gitlab_manager_cache"
DEFAULT_CLONE_ROOT = "~/.glab-repos"
DEFAULT_CACHE_TTL_S: int = 300
# ^ Listing cache lifetime. Override with GITLAB_MANAGER_CACHE_TTL_S or --ttl.

API_PREFIX = "/api/v4"


def validate_https_url(url: str) -> str:
    u = str(url or "").strip()
    if not u.startswith("https://") or len(u) <= len("https://"):
        raise ValidationError(f"Only HTTPS instance URLs are allowed: {url!r}")
    return u.rstrip("/")


def cache_ttl_from_env(default: int = DEFAULT_CACHE_TTL_S) -> int:
    raw = os.environ.get("GITLAB_MANAGER_CACHE_TTL_S")
    if not raw:
        return int(default)
    try:
        return max(0, int(raw))
    except ValueError:
        _logger.warning("Ignoring invalid GITLAB_MANAGER_CACHE_TTL_S=%r", raw)
        return int(default)


@dataclass(frozen=True)
class Session:
    instance_url: str
    token: str = field(default="", repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "instance_url", validate_https_url(self.instance_url))

    @property
    def base_url(self) -> str:
        return f"{self.instance_url}{API_PREFIX}"

    def reconfigure(self, *, instance_url: Optional[str] = None, token: Optional[str] = None) -> "Session":
        """Return a new session; changing the instance drops the old token unless one is given."""
        changes: Dict[str, Any] = {}
        if instance_url is not None:
            changes["instance_url"] = instance_url
            if validate_https_url(instance_url) != self.instance_url and token is None:
                changes["token"] = ""
        if token is not None:
            changes["token"] = token
        return replace(self, **changes)


class ConfigStore:
    """Single JSON object holding at least `instance_url`."""

    def __init__(self, path: Union[str, os.PathLike] = DEFAULT_CONFIG_FILE):
        self.path = Path(path).expanduser()

    def _read(self) -> Optional[Dict[str, Any]]:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text() or "{}")
        except (OSError, json.JSONDecodeError) as e:
            _logger.warning("Config file %s is unreadable (%s); using defaults", self.path, e)
            return None
        return data if isinstance(data, dict) else None

    def _write(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = f"{self.path}.tmp.{os.getpid()}"
        Path(tmp).write_text(json.dumps(data) + "\n")
        os.replace(tmp, str(self.path))

    def load(self) -> str:
        """Return the configured instance URL, writing the default when missing."""
        data = self._read()
        url = str((data or {}).get("instance_url") or "")
        if not url:
            url = DEFAULT_INSTANCE_URL
            self._write({**(data or {}), "instance_url": url})
        return url

    def save(self, instance_url: str) -> None:
        url = validate_https_url(instance_url)
        data = self._read() or {}
        data["instance_url"] = url
        self._write(data)
        _logger.debug("Saved instance_url=%s to %s", url, self.path)
