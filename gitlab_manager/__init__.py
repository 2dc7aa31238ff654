# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""gitlab-manager: GitLab groups/projects from the terminal.

Layout:
- `http_client` / `paginator` / `cache`: the API access layer
- `repository` / `files`: group + project operations and file upserts
- `clone` / `secrets` / `session`: local state (clones, keyring token, config)
- `cli`: interactive menus on top of the above
"""

from __future__ import annotations

__version__ = "1.3.0"

from .cache import ListingCache
from .exceptions import (
    FilesystemError,
    GitLabManagerError,
    RemoteError,
    SecretStoreError,
    TransportError,
    ValidationError,
)
from .files import UpsertOutcome, upsert_file
from .http_client import ApiResponse, GitLabAPIClient
from .models import Group, Project
from .paginator import fetch_all
from .repository import CloneTarget, GroupRepository, ProjectRepository
from .session import ConfigStore, Session

__all__ = [
    "ApiResponse",
    "CloneTarget",
    "ConfigStore",
    "FilesystemError",
    "GitLabAPIClient",
    "GitLabManagerError",
    "Group",
    "GroupRepository",
    "ListingCache",
    "Project",
    "ProjectRepository",
    "RemoteError",
    "SecretStoreError",
    "Session",
    "TransportError",
    "UpsertOutcome",
    "ValidationError",
    "fetch_all",
    "upsert_file",
]
