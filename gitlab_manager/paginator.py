# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Follow GitLab's `X-Next-Page` header and return one concatenated list.

Either the whole collection is returned or an error is raised; partially
fetched pages are never exposed.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, TYPE_CHECKING

from .exceptions import RemoteError
from .http_client import raise_for_remote

if TYPE_CHECKING:  # pragma: no cover
    from .http_client import GitLabAPIClient

_logger = logging.getLogger(__name__)

NEXT_PAGE_HEADER = "X-Next-Page"
DEFAULT_PER_PAGE = 100


def next_page(headers: Mapping[str, str]) -> Optional[str]:
    v = str(headers.get(NEXT_PAGE_HEADER) or "").strip()
    return v or None


def fetch_all(client: "GitLabAPIClient", path: str, params: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
    """Fetch every page of a listing endpoint, in server order."""
    base_params: Dict[str, Any] = dict(params or {})
    base_params.setdefault("per_page", DEFAULT_PER_PAGE)

    items: List[Dict[str, Any]] = []
    page: Optional[str] = "1"
    n_pages = 0
    while page is not None:
        resp = client.request("GET", path, params={**base_params, "page": page}, label=f"GET {path} (paginated)")
        raise_for_remote(resp, path)
        data = resp.json()
        if not isinstance(data, list):
            raise RemoteError(status_code=resp.status_code, endpoint=path, body=resp.body)
        items.extend(data)
        n_pages += 1
        page = next_page(resp.headers)

    _logger.debug("Fetched %d item(s) from %s in %d page(s)", len(items), path, n_pages)
    return items
