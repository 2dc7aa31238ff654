# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Local clones under the clone root (`~/.glab-repos` by default).

Repositories land at `<root>/<path_with_namespace>`. Re-cloning an existing
checkout fetches and fast-forwards it instead; a non-fast-forward state is an
error, never silently skipped.
"""

from __future__ import annotations

import enum
import logging
import os
from pathlib import Path
from typing import Union

import git  # type: ignore[import-not-found]

from .exceptions import FilesystemError

_logger = logging.getLogger(__name__)


class CloneOutcome(enum.Enum):
    CLONED = "cloned"
    UPDATED = "updated"


class CloneManager:
    def __init__(self, root: Union[str, os.PathLike]):
        self.root = Path(root).expanduser()

    def ensure_root(self) -> Path:
        try:
            self.root.mkdir(mode=0o700, parents=True, exist_ok=True)
        except OSError as e:
            raise FilesystemError(path=self.root, message=f"Cannot create clone root: {e}") from e
        if not os.access(self.root, os.W_OK):
            raise FilesystemError(path=self.root, message="Clone root is not writable")
        return self.root

    def destination(self, path_with_namespace: str) -> Path:
        rel = str(path_with_namespace or "").strip("/")
        dest = (self.root / rel).resolve()
        root = self.root.resolve()
        if not rel or dest == root or root not in dest.parents:
            raise FilesystemError(path=dest, message=f"Refusing to clone outside the clone root: {path_with_namespace!r}")
        return dest

    def clone_or_update(self, url: str, path_with_namespace: str) -> CloneOutcome:
        self.ensure_root()
        dest = self.destination(path_with_namespace)

        if (dest / ".git").is_dir():
            _logger.info("Repository exists at '%s'. Pulling latest...", dest)
            try:
                repo = git.Repo(dest)
                repo.git.fetch("--all", "--prune")
                repo.git.pull("--ff-only")
            except (git.GitCommandError, git.InvalidGitRepositoryError) as e:
                raise FilesystemError(path=dest, message=f"git fetch/pull --ff-only failed: {e}") from e
            _logger.info("Updated %s", dest)
            return CloneOutcome.UPDATED

        _logger.info("Cloning into '%s'", dest)
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            git.Repo.clone_from(url, str(dest))
        except OSError as e:
            raise FilesystemError(path=dest.parent, message=f"Cannot create clone directory: {e}") from e
        except git.GitCommandError as e:
            raise FilesystemError(path=dest, message=f"git clone failed: {e}") from e
        _logger.info("Cloned to %s", dest)
        return CloneOutcome.CLONED
