# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Group and project operations (list/create/rename/delete).

Listings:
  GET /api/v4/groups?min_access_level=10&with_shared=false&per_page=100
  GET /api/v4/projects?membership=true&order_by=last_activity_at&sort=desc&per_page=100

Cache policy:
  - listings are cached under "groups" / "projects" for the cache TTL
  - any successful create/rename/delete clears the whole cache
  - a failed listing raises; stale entries are never served as a fallback
"""

from __future__ import annotations

import logging
import re
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, List, Mapping, Optional, Tuple, TypeVar, TYPE_CHECKING

from .exceptions import ValidationError
from .files import UpsertOutcome, seed_scaffold
from .http_client import ApiResponse, raise_for_remote
from .models import Group, Project
from .paginator import fetch_all
from .polling import PollStatus, poll

if TYPE_CHECKING:  # pragma: no cover
    from .cache import ListingCache
    from .http_client import GitLabAPIClient

_logger = logging.getLogger(__name__)

T = TypeVar("T")

PATH_RE = re.compile(r"[a-z0-9._-]+")

GUEST_ACCESS_LEVEL = 10
DEVELOPER_ACCESS_LEVEL = 30

CLONE_URL_ATTEMPTS = 5
CLONE_URL_INTERVAL_S = 1.0
DEFAULT_BRANCH_FALLBACK = "main"


def validate_name(name: Optional[str]) -> str:
    v = str(name or "").strip()
    if not v:
        raise ValidationError("Name cannot be empty.")
    return v


def validate_path(path: Optional[str]) -> str:
    v = str(path or "")
    if not PATH_RE.fullmatch(v):
        raise ValidationError(f"Invalid path {v!r}. Allowed: a-z 0-9 . _ -")
    return v


class ResourceRepository(ABC, Generic[T]):
    """Shared list -> cache -> select flow plus the mutating calls."""

    def __init__(self, api: "GitLabAPIClient", cache: "ListingCache"):
        self.api = api
        self.cache = cache
        self._last_listing: Optional[List[T]] = None

    @property
    @abstractmethod
    def cache_name(self) -> str:
        ...

    @property
    @abstractmethod
    def endpoint(self) -> str:
        ...

    @abstractmethod
    def list_params(self) -> Dict[str, Any]:
        ...

    @abstractmethod
    def record_from_api(self, data: Mapping[str, Any]) -> T:
        ...

    def _remember(self, records: List[T]) -> List[T]:
        self._last_listing = list(records)
        return list(records)

    def list(self, *, use_cache: bool = True) -> List[T]:
        payload = self.cache.get(self.cache_name) if use_cache else None
        if not isinstance(payload, list):
            payload = fetch_all(self.api, self.endpoint, self.list_params())
            self.cache.put(self.cache_name, payload)
        return self._remember([self.record_from_api(d) for d in payload])

    def select(self, index: int) -> Optional[T]:
        """Resolve a 1-based choice from the most recent listing; 0 cancels."""
        if int(index) == 0:
            return None
        items = self._last_listing
        if not items:
            raise ValidationError("Nothing listed to select from.")
        if not 1 <= int(index) <= len(items):
            raise ValidationError(f"Invalid selection {index}; choose 1-{len(items)} or 0 to cancel.")
        return items[int(index) - 1]

    def _mutate(self, method: str, path: str, body: Optional[Dict[str, Any]] = None) -> ApiResponse:
        resp = raise_for_remote(self.api.request(method, path, json=body), path)
        self.cache.invalidate_all()
        return resp

    def _create(self, body: Dict[str, Any]) -> T:
        return self.record_from_api(self._mutate("POST", self.endpoint, body).json())

    def rename(self, resource_id: int, name: str) -> T:
        """Change only the display name."""
        new_name = validate_name(name)
        resp = self._mutate("PUT", f"{self.endpoint}/{int(resource_id)}", {"name": new_name})
        return self.record_from_api(resp.json())

    def delete(self, resource_id: int, *, confirmed: bool) -> bool:
        """Irreversible. Returns False without calling the API unless `confirmed`."""
        if not confirmed:
            _logger.info("Delete of %s/%s cancelled", self.endpoint, resource_id)
            return False
        self._mutate("DELETE", f"{self.endpoint}/{int(resource_id)}")
        return True


class GroupRepository(ResourceRepository[Group]):
    cache_name = "groups"
    endpoint = "/groups"

    def list_params(self) -> Dict[str, Any]:
        return {"min_access_level": GUEST_ACCESS_LEVEL, "with_shared": "false", "per_page": 100}

    def record_from_api(self, data: Mapping[str, Any]) -> Group:
        return Group.from_api(data)

    def list_namespaces(self, *, min_access_level: int = DEVELOPER_ACCESS_LEVEL) -> List[Group]:
        """Groups a project can be created in. Always fetched, never cached, and not kept for `select`."""
        payload = fetch_all(self.api, self.endpoint, {"min_access_level": int(min_access_level), "per_page": 100})
        return [Group.from_api(d) for d in payload]

    def create(self, name: str, path: str, parent_id: Optional[int] = None) -> Group:
        body: Dict[str, Any] = {"name": validate_name(name), "path": validate_path(path)}
        if parent_id is not None:
            body["parent_id"] = int(parent_id)
        group = self._create(body)
        _logger.info("Group created: %s (id %s)", group.full_path, group.id)
        return group


@dataclass(frozen=True)
class CloneTarget:
    url: str
    path_with_namespace: str
    status: PollStatus

    @property
    def is_fallback(self) -> bool:
        return self.status is PollStatus.TIMED_OUT


class ProjectRepository(ResourceRepository[Project]):
    cache_name = "projects"
    endpoint = "/projects"

    def __init__(self, api: "GitLabAPIClient", cache: "ListingCache", *, sleep: Callable[[float], None] = time.sleep):
        super().__init__(api, cache)
        self._sleep = sleep

    def list_params(self) -> Dict[str, Any]:
        return {"membership": "true", "order_by": "last_activity_at", "sort": "desc", "per_page": 100}

    def record_from_api(self, data: Mapping[str, Any]) -> Project:
        return Project.from_api(data)

    def get(self, project_id: int) -> Project:
        return Project.from_api(self.api.get_json(f"{self.endpoint}/{int(project_id)}"))

    def create(self, name: str, *, path: Optional[str] = None, namespace_id: Optional[int] = None) -> Project:
        body: Dict[str, Any] = {"name": validate_name(name)}
        if path is not None:
            body["path"] = validate_path(path)
        if namespace_id is not None:
            body["namespace_id"] = int(namespace_id)
        body["initialize_with_readme"] = True
        body["visibility"] = "private"
        project = self._create(body)
        _logger.info("Project created: %s (id %s)", project.path_with_namespace, project.id)
        return project

    def create_and_seed(
        self, name: str, *, path: Optional[str] = None, namespace_id: Optional[int] = None
    ) -> Tuple[Project, Dict[str, UpsertOutcome]]:
        """Create a project, then seed README.md and .gitlab-ci.yml on its default branch."""
        project = self.create(name, path=path, namespace_id=namespace_id)
        branch = project.default_branch or DEFAULT_BRANCH_FALLBACK
        _logger.info("Adding template files on branch '%s'", branch)
        return project, seed_scaffold(self.api, project.id, project.name or name, branch)

    def fallback_clone_url(self, path_with_namespace: str) -> str:
        return f"{self.api.instance_url.rstrip('/')}/{path_with_namespace}.git"

    def resolve_clone_target(
        self,
        project_id: int,
        path_with_namespace: str,
        *,
        attempts: int = CLONE_URL_ATTEMPTS,
        interval_s: float = CLONE_URL_INTERVAL_S,
    ) -> CloneTarget:
        """Poll the project until it exposes a clone URL.

        A freshly created project can come back without ssh/http URLs for a
        moment. After `attempts` tries this falls back to
        `<instance>/<path_with_namespace>.git`, which is valid on standard
        deployments; that is a degraded result, not an error.
        """

        def _fetch() -> Optional[Project]:
            p = self.get(project_id)
            return p if p.clone_url else None

        result = poll(_fetch, attempts=attempts, interval_s=interval_s, sleep=self._sleep)
        if result.resolved and result.value is not None:
            p = result.value
            return CloneTarget(url=p.clone_url, path_with_namespace=p.path_with_namespace or path_with_namespace, status=PollStatus.RESOLVED)

        url = self.fallback_clone_url(path_with_namespace)
        _logger.warning("Clone URL missing after %d attempt(s); falling back to: %s", result.attempts, url)
        return CloneTarget(url=url, path_with_namespace=path_with_namespace, status=PollStatus.TIMED_OUT)

    def clone_target_for(self, project: Project) -> CloneTarget:
        """Clone target for a listed project: its own URL, else one refetch, else the fallback."""
        if project.clone_url:
            return CloneTarget(url=project.clone_url, path_with_namespace=project.path_with_namespace, status=PollStatus.RESOLVED)
        return self.resolve_clone_target(project.id, project.path_with_namespace, attempts=1)
