# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Typed records for GitLab groups and projects.

Remote JSON is parsed here, at the API boundary; the rest of the package only
sees these frozen records.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional


def _opt_int(v: Any) -> Optional[int]:
    if v is None or v == "":
        return None
    try:
        return int(v)
    except (TypeError, ValueError):
        return None


def _str(v: Any) -> str:
    return "" if v is None else str(v)


@dataclass(frozen=True)
class Group:
    id: int
    full_path: str
    name: str
    parent_id: Optional[int] = None

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "Group":
        """Build from a `/groups` object.

        Example input (abridged):
            {"id": 42, "name": "Infra", "path": "infra", "full_path": "infra", "parent_id": null}
        """
        return cls(
            id=int(data["id"]),
            full_path=_str(data.get("full_path") or data.get("path")),
            name=_str(data.get("name")),
            parent_id=_opt_int(data.get("parent_id")),
        )

    def label(self) -> str:
        return f"{self.full_path} (id {self.id})"


@dataclass(frozen=True)
class Project:
    id: int
    path_with_namespace: str
    name: str
    default_branch: Optional[str] = None
    ssh_url_to_repo: str = ""
    http_url_to_repo: str = ""
    last_activity_at: Optional[str] = None

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> "Project":
        return cls(
            id=int(data["id"]),
            path_with_namespace=_str(data.get("path_with_namespace")),
            name=_str(data.get("name")),
            default_branch=data.get("default_branch") or None,
            ssh_url_to_repo=_str(data.get("ssh_url_to_repo")),
            http_url_to_repo=_str(data.get("http_url_to_repo")),
            last_activity_at=data.get("last_activity_at") or None,
        )

    @property
    def clone_url(self) -> str:
        """SSH URL if present, else HTTPS URL, else ""."""
        return self.ssh_url_to_repo or self.http_url_to_repo

    def label(self) -> str:
        return f"{self.path_with_namespace} (id {self.id})"
