"""
Pytest tests for secrets.py (secret-tool adapter). subprocess.run is stubbed.
"""

import subprocess

import pytest

from gitlab_manager import secrets as secrets_mod
from gitlab_manager.exceptions import SecretStoreError
from gitlab_manager.secrets import KEYRING_ACCOUNT, KEYRING_SERVICE, SecretStore, SecretToolStore

INSTANCE = "https://gitlab.example.test"


@pytest.fixture
def runs(monkeypatch):
    calls = []
    result = {"returncode": 0, "stdout": "", "stderr": ""}

    def fake_run(cmd, **kwargs):
        calls.append((cmd, kwargs))
        return subprocess.CompletedProcess(cmd, result["returncode"], stdout=result["stdout"], stderr=result["stderr"])

    monkeypatch.setattr(secrets_mod.subprocess, "run", fake_run)
    return calls, result


def test_store_satisfies_protocol():
    assert isinstance(SecretToolStore(), SecretStore)


def test_lookup_returns_token(runs):
    calls, result = runs
    result["stdout"] = "glpat-abc\n"

    token = SecretToolStore().lookup(KEYRING_SERVICE, KEYRING_ACCOUNT, INSTANCE)

    assert token == "glpat-abc"
    assert calls[0][0] == [
        "secret-tool", "lookup", "service", "gitlab-manager", "account", "access-token", "instance", INSTANCE,
    ]


def test_lookup_missing_secret_is_none(runs):
    _, result = runs
    result["returncode"] = 1
    assert SecretToolStore().lookup(KEYRING_SERVICE, KEYRING_ACCOUNT, INSTANCE) is None


def test_store_pipes_token_on_stdin(runs):
    calls, _ = runs

    SecretToolStore().store(KEYRING_SERVICE, KEYRING_ACCOUNT, INSTANCE, "glpat-new")

    cmd, kwargs = calls[0]
    assert cmd[:2] == ["secret-tool", "store"]
    assert f"--label=GitLab PAT ({INSTANCE})" in cmd
    assert kwargs["input"] == "glpat-new"
    assert "glpat-new" not in cmd


def test_store_failure_raises(runs):
    _, result = runs
    result["returncode"] = 1
    result["stderr"] = "Cannot autolaunch D-Bus without X11 $DISPLAY"

    with pytest.raises(SecretStoreError) as ei:
        SecretToolStore().store(KEYRING_SERVICE, KEYRING_ACCOUNT, INSTANCE, "glpat-new")
    assert "D-Bus" in str(ei.value)


def test_missing_binary(monkeypatch):
    def fake_run(cmd, **kwargs):
        raise FileNotFoundError(cmd[0])

    monkeypatch.setattr(secrets_mod.subprocess, "run", fake_run)
    with pytest.raises(SecretStoreError):
        SecretToolStore().lookup(KEYRING_SERVICE, KEYRING_ACCOUNT, INSTANCE)
