# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""GitLab REST client.

Transport policy:
  - HTTPS only (checked before connecting; plain-HTTP redirect hops are refused
    by the adapter mounted on http://)
  - TLS >= 1.2
  - connect timeout 10s, read timeout 60s
  - 2 automatic retries on connect/read failures; HTTP error statuses are
    returned to the caller untouched
"""

from __future__ import annotations

import json as jsonlib
import logging
import ssl
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

import requests
from requests.adapters import BaseAdapter, HTTPAdapter
from requests.structures import CaseInsensitiveDict
from urllib3.util.retry import Retry

from .exceptions import RemoteError, TransportError
from .session import Session

_logger = logging.getLogger(__name__)

DEFAULT_CONNECT_TIMEOUT_S = 10.0
DEFAULT_READ_TIMEOUT_S = 60.0
DEFAULT_TRANSPORT_RETRIES = 2
DEFAULT_RETRY_BACKOFF_S = 1.0


@dataclass(frozen=True)
class ApiResponse:
    status_code: int
    body: bytes = b""
    headers: Mapping[str, str] = field(default_factory=CaseInsensitiveDict)

    @property
    def ok(self) -> bool:
        return 200 <= int(self.status_code) < 300

    def json(self) -> Any:
        text = self.body.decode("utf-8") if self.body else ""
        return jsonlib.loads(text) if text.strip() else None


def raise_for_remote(response: ApiResponse, endpoint: str) -> ApiResponse:
    """Return `response` if it is 2xx, else raise RemoteError with the verbatim body."""
    if not response.ok:
        raise RemoteError(status_code=response.status_code, endpoint=endpoint, body=response.body)
    return response


class TLS12Adapter(HTTPAdapter):
    """HTTPAdapter that refuses anything older than TLS 1.2."""

    def init_poolmanager(self, *args: Any, **kwargs: Any) -> None:
        ctx = ssl.create_default_context()
        ctx.minimum_version = ssl.TLSVersion.TLSv1_2
        kwargs["ssl_context"] = ctx
        super().init_poolmanager(*args, **kwargs)


class RefusePlainHTTPAdapter(BaseAdapter):
    """Refuses every plain-HTTP request, including redirect hops off HTTPS, before anything is sent."""

    def send(self, request: requests.PreparedRequest, **kwargs: Any) -> requests.Response:
        raise requests.exceptions.InvalidSchema(f"Refusing plain-HTTP request to {request.url}")

    def close(self) -> None:
        pass


def build_http_session(*, retries: int = DEFAULT_TRANSPORT_RETRIES, backoff_s: float = DEFAULT_RETRY_BACKOFF_S) -> requests.Session:
    retry = Retry(
        total=retries,
        connect=retries,
        read=retries,
        status=0,
        redirect=5,
        backoff_factor=backoff_s,
        raise_on_status=False,
        respect_retry_after_header=False,
    )
    http = requests.Session()
    http.mount("https://", TLS12Adapter(max_retries=retry))
    http.mount("http://", RefusePlainHTTPAdapter())
    return http


class GitLabAPIClient:
    """GitLab REST API v4 client bound to one `Session`."""

    def __init__(
        self,
        session: Session,
        *,
        http: Optional[requests.Session] = None,
        connect_timeout_s: float = DEFAULT_CONNECT_TIMEOUT_S,
        read_timeout_s: float = DEFAULT_READ_TIMEOUT_S,
        retries: int = DEFAULT_TRANSPORT_RETRIES,
    ):
        self.session = session
        self.timeout = (float(connect_timeout_s), float(read_timeout_s))
        self._http = http if http is not None else build_http_session(retries=retries)

        # Per-run REST stats (label-based, like the dashboards' GitLab client).
        self._rest_calls_total: int = 0
        self._rest_calls_by_label: Dict[str, int] = {}
        self._rest_errors_by_status: Dict[int, int] = {}
        self._rest_transport_errors: int = 0
        self._rest_time_total_s: float = 0.0

    @property
    def instance_url(self) -> str:
        return self.session.instance_url

    def close(self) -> None:
        self._http.close()

    def _url(self, path: str) -> str:
        p = str(path or "")
        return f"{self.session.base_url}{p}" if p.startswith("/") else f"{self.session.base_url}/{p}"

    def _headers(self, *, has_body: bool) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.session.token:
            headers["PRIVATE-TOKEN"] = self.session.token
        if has_body:
            headers["Content-Type"] = "application/json"
        return headers

    def _rest_record(self, *, label: str, status_code: Optional[int], dt_s: float) -> None:
        self._rest_calls_total += 1
        self._rest_calls_by_label[label] = self._rest_calls_by_label.get(label, 0) + 1
        self._rest_time_total_s += max(0.0, float(dt_s))
        if status_code is None:
            self._rest_transport_errors += 1
        elif status_code >= 400:
            self._rest_errors_by_status[status_code] = self._rest_errors_by_status.get(status_code, 0) + 1

    def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[Mapping[str, Any]] = None,
        label: Optional[str] = None,
    ) -> ApiResponse:
        """Issue one request and return whatever response was received.

        Raises:
            TransportError: non-HTTPS target, TLS/network failure after retries,
                or a redirect that left HTTPS.
        """
        method = str(method).upper()
        url = self._url(path)
        lbl = str(label or "").strip() or f"{method} {path.split('?', 1)[0]}"
        if not url.startswith("https://"):
            raise TransportError(endpoint=path, message=f"Refusing non-HTTPS request to {url}")

        status_code: Optional[int] = None
        t0 = time.monotonic()
        try:
            resp = self._http.request(
                method,
                url,
                params=dict(params) if params else None,
                data=jsonlib.dumps(json) if json is not None else None,
                headers=self._headers(has_body=json is not None),
                timeout=self.timeout,
            )
            status_code = int(resp.status_code)
        except requests.exceptions.RequestException as e:
            _logger.debug("%s %s failed: %s", method, path, e)
            raise TransportError(endpoint=path, message=f"GitLab API request failed for {path}: {e}") from e
        finally:
            self._rest_record(label=lbl, status_code=status_code, dt_s=time.monotonic() - t0)

        final_url = str(getattr(resp, "url", "") or url)
        if not final_url.startswith("https://"):
            raise TransportError(endpoint=path, message=f"Redirected to non-HTTPS URL {final_url}")

        _logger.debug("%s %s -> %s", method, path, status_code)
        return ApiResponse(status_code=status_code, body=resp.content or b"", headers=CaseInsensitiveDict(resp.headers))

    def get_json(self, path: str, *, params: Optional[Mapping[str, Any]] = None, label: Optional[str] = None) -> Any:
        """GET and decode JSON; non-2xx raises RemoteError."""
        return raise_for_remote(self.request("GET", path, params=params, label=label), path).json()

    def get_rest_call_stats(self) -> Dict[str, Any]:
        return {
            "total": int(self._rest_calls_total),
            "time_total_s": float(self._rest_time_total_s),
            "transport_errors": int(self._rest_transport_errors),
            "by_label": dict(sorted(self._rest_calls_by_label.items(), key=lambda kv: (-kv[1], kv[0]))),
            "errors_by_status": dict(sorted(self._rest_errors_by_status.items())),
        }
