# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""gitlab-manager error types.

Every operation either returns a value or raises one of these. The menu layer
catches `GitLabManagerError`, reports it, and returns to a stable menu.
"""

from __future__ import annotations

from pathlib import Path
from typing import Union


class GitLabManagerError(Exception):
    pass


class TransportError(GitLabManagerError):
    """Network/TLS failure after retries, or a target that is not HTTPS."""

    def __init__(self, *, endpoint: str, message: str):
        super().__init__(message)
        self.endpoint = str(endpoint or "")


class RemoteError(GitLabManagerError):
    """Non-2xx response. `body` is kept verbatim for diagnosis."""

    def __init__(self, *, status_code: int, endpoint: str, body: Union[bytes, str] = b""):
        self.status_code = int(status_code)
        self.endpoint = str(endpoint or "")
        if isinstance(body, bytes):
            body = body.decode("utf-8", errors="replace")
        self.body = body
        super().__init__(f"HTTP {self.status_code} for {self.endpoint}: {self.body}")


class ValidationError(GitLabManagerError):
    pass


class FilesystemError(GitLabManagerError):
    def __init__(self, *, path: Union[str, Path], message: str):
        super().__init__(f"{message} ({path})")
        self.path = Path(path)


class SecretStoreError(GitLabManagerError):
    pass
