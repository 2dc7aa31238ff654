# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""Token storage in the system keyring via libsecret's `secret-tool`."""

from __future__ import annotations

import logging
import subprocess
from typing import Optional, Protocol, runtime_checkable

from .exceptions import SecretStoreError

_logger = logging.getLogger(__name__)

KEYRING_SERVICE = "gitlab-manager"
KEYRING_ACCOUNT = "access-token"


@runtime_checkable
class SecretStore(Protocol):
    def lookup(self, service: str, account: str, instance: str) -> Optional[str]: ...

    def store(self, service: str, account: str, instance: str, credential: str) -> None: ...


class SecretToolStore:
    """`secret-tool lookup|store service <s> account <a> instance <url>`."""

    def __init__(self, binary: str = "secret-tool", timeout_s: float = 30.0):
        self.binary = binary
        self.timeout_s = float(timeout_s)

    def _run(self, args: list, *, stdin: Optional[str] = None) -> subprocess.CompletedProcess:
        try:
            return subprocess.run(
                [self.binary, *args],
                input=stdin,
                capture_output=True,
                text=True,
                timeout=self.timeout_s,
                check=False,
            )
        except FileNotFoundError as e:
            raise SecretStoreError(f"{self.binary} not found; install libsecret-tools") from e
        except subprocess.TimeoutExpired as e:
            raise SecretStoreError(f"{self.binary} timed out after {self.timeout_s:.0f}s") from e

    def lookup(self, service: str, account: str, instance: str) -> Optional[str]:
        # Exit status 1 with empty output just means "no such secret".
        result = self._run(["lookup", "service", service, "account", account, "instance", instance])
        value = (result.stdout or "").strip()
        if result.returncode != 0 and not value:
            _logger.debug("No keyring entry for %s/%s at %s", service, account, instance)
            return None
        return value or None

    def store(self, service: str, account: str, instance: str, credential: str) -> None:
        result = self._run(
            [
                "store",
                f"--label=GitLab PAT ({instance})",
                "service", service,
                "account", account,
                "instance", instance,
            ],
            stdin=credential,
        )
        if result.returncode != 0:
            raise SecretStoreError(f"secret-tool store failed: {(result.stderr or '').strip()}")
        _logger.info("Token saved to keyring.")
