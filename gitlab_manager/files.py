# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Create-or-update of a single file in a project's repository.

Resource:
  GET  /api/v4/projects/{id}/repository/files/{url-encoded path}?ref={branch}
  POST /api/v4/projects/{id}/repository/files/{url-encoded path}   (create)
  PUT  /api/v4/projects/{id}/repository/files/{url-encoded path}   (update)

The existence check and the write are two separate calls, so a concurrent
writer can slip in between; the last write wins.
"""

from __future__ import annotations

import enum
import logging
import urllib.parse
from typing import Dict, List, Tuple, TYPE_CHECKING

import yaml

from .exceptions import RemoteError
from .http_client import raise_for_remote

if TYPE_CHECKING:  # pragma: no cover
    from .http_client import GitLabAPIClient

_logger = logging.getLogger(__name__)

README_FILE = "README.md"
CI_CONFIG_FILE = ".gitlab-ci.yml"


class UpsertOutcome(enum.Enum):
    CREATED = "created"
    UPDATED = "updated"


def file_endpoint(project_id: int, file_path: str) -> str:
    return f"/projects/{int(project_id)}/repository/files/{urllib.parse.quote(str(file_path), safe='')}"


def upsert_file(
    client: "GitLabAPIClient",
    project_id: int,
    file_path: str,
    content: str,
    branch: str,
    commit_message: str,
) -> UpsertOutcome:
    """Write `content` to `file_path` on `branch`, creating the file if needed.

    Only a 404 on the existence check means "absent"; any other non-2xx status
    (401/403/5xx) raises RemoteError rather than risking a blind create.
    """
    endpoint = file_endpoint(project_id, file_path)
    check = client.request("GET", endpoint, params={"ref": branch}, label="GET repository/files")

    if check.ok:
        method, outcome = "PUT", UpsertOutcome.UPDATED
    elif check.status_code == 404:
        method, outcome = "POST", UpsertOutcome.CREATED
    else:
        raise RemoteError(status_code=check.status_code, endpoint=endpoint, body=check.body)

    payload = {"branch": branch, "content": content, "commit_message": commit_message}
    raise_for_remote(client.request(method, endpoint, json=payload, label=f"{method} repository/files"), endpoint)
    _logger.info("%s %s on %s", outcome.value.capitalize(), file_path, branch)
    return outcome


# -----------------------------------------------------------------------------
# Scaffold for new projects
# -----------------------------------------------------------------------------

def readme_content(title: str) -> str:
    return f"# {title}\n\nBasic project scaffold created by gitlab-manager.\n"


def ci_config_content() -> str:
    # ${SHARED_CONFIGURATION} is a CI/CD variable expanded by GitLab, not by us.
    doc = {
        "variables": {
            "PUSH_TO_GITHUB": "true",
            "GITHUB_REPO_PRIVATE": "false",
        },
        "include": [
            {"project": "${SHARED_CONFIGURATION}", "file": "github-deploy.yml"},
        ],
    }
    return yaml.safe_dump(doc, sort_keys=False, default_flow_style=False)


def scaffold_files(title: str) -> List[Tuple[str, str, str]]:
    """(path, content, commit message) for every file seeded into a new project."""
    return [
        (README_FILE, readme_content(title), "Initialize README"),
        (CI_CONFIG_FILE, ci_config_content(), "Add CI template"),
    ]


def seed_scaffold(client: "GitLabAPIClient", project_id: int, title: str, branch: str) -> Dict[str, UpsertOutcome]:
    """Upsert every scaffold file; the first failure raises and stops the rest."""
    results: Dict[str, UpsertOutcome] = {}
    for path, content, message in scaffold_files(title):
        results[path] = upsert_file(client, project_id, path, content, branch, message)
    return results
