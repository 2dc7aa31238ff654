# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Disk-backed cache for listing results.

Layout: one JSON document per logical listing key,
    <cache_dir>/groups.json
    <cache_dir>/projects.json

The file's mtime is the entry's timestamp. An entry is served only while
`now - mtime < ttl_s`; anything older, missing or unreadable is a miss.
Mutations call `invalidate_all()` since one create/rename/delete can change
several listings.
"""

from __future__ import annotations

import json
import logging
import os
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional, Union

from .session import DEFAULT_CACHE_TTL_S

_logger = logging.getLogger(__name__)

_KEY_RE = re.compile(r"[A-Za-z0-9_.-]+")


@dataclass
class CacheStats:
    hit: int = 0
    miss: int = 0
    write: int = 0
    invalidate: int = 0


class ListingCache:
    def __init__(
        self,
        cache_dir: Union[str, os.PathLike],
        *,
        ttl_s: int = DEFAULT_CACHE_TTL_S,
        clock: Callable[[], float] = time.time,
    ):
        self.cache_dir = Path(cache_dir).expanduser()
        self.ttl_s = int(ttl_s)
        self._clock = clock
        self.stats = CacheStats()

    def _path(self, key: str) -> Path:
        if not _KEY_RE.fullmatch(str(key or "")):
            raise ValueError(f"Invalid cache key: {key!r}")
        return self.cache_dir / f"{key}.json"

    def get(self, key: str) -> Optional[Any]:
        """Return the cached payload, or None when absent or expired."""
        p = self._path(key)
        try:
            age = self._clock() - p.stat().st_mtime
        except FileNotFoundError:
            self.stats.miss += 1
            _logger.debug("Cache MISS (missing): %s", key)
            return None

        if age >= self.ttl_s:
            self.stats.miss += 1
            _logger.debug("Cache MISS (expired, age=%.0fs): %s", age, key)
            return None

        try:
            payload = json.loads(p.read_text())
        except (OSError, json.JSONDecodeError) as e:
            self.stats.miss += 1
            _logger.warning("Ignoring unreadable cache entry %s: %s", p, e)
            return None

        self.stats.hit += 1
        _logger.debug("Cache HIT: %s (age=%.0fs)", key, age)
        return payload

    def put(self, key: str, payload: Any) -> None:
        p = self._path(key)
        self.cache_dir.mkdir(parents=True, exist_ok=True)

        # Atomic write (tmp file + rename)
        tmp = f"{p}.tmp.{os.getpid()}"
        Path(tmp).write_text(json.dumps(payload, separators=(",", ":")))
        os.replace(tmp, str(p))
        now = self._clock()
        os.utime(p, (now, now))
        self.stats.write += 1

    def invalidate_all(self) -> None:
        removed = 0
        if self.cache_dir.is_dir():
            for p in self.cache_dir.glob("*.json"):
                try:
                    p.unlink()
                    removed += 1
                except FileNotFoundError:
                    pass
        self.stats.invalidate += 1
        _logger.debug("Cache invalidated (%d entr%s removed)", removed, "y" if removed == 1 else "ies")
