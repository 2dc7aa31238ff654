"""
Shared pytest fixtures for gitlab_manager tests.

FakeGitLab is a GitLabAPIClient whose `request()` is answered from in-memory
routes instead of the network, so the real `get_json()` / stats code still runs.
"""

import json
import re
import urllib.parse
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

from gitlab_manager.cache import ListingCache
from gitlab_manager.http_client import ApiResponse, GitLabAPIClient
from gitlab_manager.session import Session

INSTANCE = "https://example.test"

_FILES_RE = re.compile(r"^/projects/(?P<pid>\d+)/repository/files/(?P<path>[^/]+)$")


def json_response(data: Any, status: int = 200, headers: Optional[Dict[str, str]] = None) -> ApiResponse:
    return ApiResponse(status_code=status, body=json.dumps(data).encode("utf-8"), headers=dict(headers or {}))


def paginated(pages: List[List[Dict[str, Any]]]) -> Callable[[Dict[str, Any], Any], ApiResponse]:
    """Route handler serving `pages` by the `page` param with X-Next-Page headers."""

    def _handler(params: Dict[str, Any], body: Any) -> ApiResponse:
        n = int(params.get("page", 1))
        nxt = str(n + 1) if n < len(pages) else ""
        return json_response(pages[n - 1], headers={"X-Next-Page": nxt})

    return _handler


@dataclass
class Call:
    method: str
    path: str
    params: Dict[str, Any]
    json: Any


class FakeGitLab(GitLabAPIClient):
    def __init__(self, instance_url: str = INSTANCE):
        super().__init__(Session(instance_url, token="glpat-test"))
        self.calls: List[Call] = []
        self._routes: Dict[Tuple[str, str], List[Any]] = {}
        # (project_id, file path, branch) -> content
        self.files: Dict[Tuple[int, str, str], str] = {}

    def route(self, method: str, path: str, *responses: Any) -> None:
        """Register responses; the last one repeats once the queue drains."""
        self._routes[(method.upper(), path)] = list(responses)

    def calls_to(self, method: str, path: str) -> List[Call]:
        return [c for c in self.calls if c.method == method.upper() and c.path == path]

    def request(self, method, path, *, json=None, params=None, label=None):
        method = method.upper()
        self.calls.append(Call(method, path, dict(params or {}), json))
        self._rest_record(label=label or f"{method} {path}", status_code=200, dt_s=0.0)

        queue = self._routes.get((method, path))
        if queue is None:
            m = _FILES_RE.match(path)
            if m:
                return self._files(method, int(m.group("pid")), urllib.parse.unquote(m.group("path")), params or {}, json)
            return json_response({"message": "404 Not Found"}, status=404)

        resp = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(resp, Exception):
            raise resp
        if callable(resp):
            resp = resp(dict(params or {}), json)
        return resp

    def _files(self, method: str, pid: int, fpath: str, params: Dict[str, Any], body: Any) -> ApiResponse:
        if method == "GET":
            key = (pid, fpath, str(params.get("ref")))
            if key not in self.files:
                return json_response({"message": "404 File Not Found"}, status=404)
            return json_response({"file_path": fpath, "content": self.files[key]})
        key = (pid, fpath, str(body["branch"]))
        if method == "POST":
            if key in self.files:
                return json_response({"message": "A file with this name already exists"}, status=400)
            self.files[key] = body["content"]
            return json_response({"file_path": fpath, "branch": body["branch"]}, status=201)
        if method == "PUT":
            if key not in self.files:
                return json_response({"message": "A file with this name doesn't exist"}, status=400)
            self.files[key] = body["content"]
            return json_response({"file_path": fpath, "branch": body["branch"]})
        return json_response({"message": "405 Method Not Allowed"}, status=405)


@pytest.fixture
def fake_api() -> FakeGitLab:
    return FakeGitLab()


@pytest.fixture
def cache(tmp_path) -> ListingCache:
    return ListingCache(tmp_path / "cache", ttl_s=300)
