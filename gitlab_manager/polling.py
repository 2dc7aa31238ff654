# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Bounded retry-with-delay for eventually consistent reads."""

from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

from .exceptions import GitLabManagerError

_logger = logging.getLogger(__name__)

T = TypeVar("T")


class PollStatus(enum.Enum):
    RESOLVED = "resolved"
    TIMED_OUT = "timed-out"


@dataclass(frozen=True)
class PollResult(Generic[T]):
    status: PollStatus
    value: Optional[T] = None
    attempts: int = 0

    @property
    def resolved(self) -> bool:
        return self.status is PollStatus.RESOLVED


def poll(
    fn: Callable[[], Optional[T]],
    *,
    attempts: int,
    interval_s: float,
    sleep: Callable[[float], None] = time.sleep,
) -> PollResult[T]:
    """Call `fn` until it returns a non-None value, at most `attempts` times.

    `GitLabManagerError` raised by `fn` counts as a failed attempt. No sleep
    follows the final attempt.
    """
    n = max(1, int(attempts))
    for i in range(1, n + 1):
        try:
            value = fn()
        except GitLabManagerError as e:
            _logger.debug("poll attempt %d/%d failed: %s", i, n, e)
            value = None
        if value is not None:
            return PollResult(status=PollStatus.RESOLVED, value=value, attempts=i)
        if i < n:
            sleep(float(interval_s))
    return PollResult(status=PollStatus.TIMED_OUT, value=None, attempts=n)
