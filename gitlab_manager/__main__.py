#!/usr/bin/env python3
# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Module entrypoint for `gitlab_manager`.

Usage:
  - `python3 -m gitlab_manager`
  - `python3 -m gitlab_manager --clone-root ~/src/gitlab -v`
"""

from __future__ import annotations

from .cli import _cli


if __name__ == "__main__":
    raise SystemExit(_cli())
