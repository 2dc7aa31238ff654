# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
"""
Interactive menus for gitlab-manager.

The menus only prompt and render; every API/cache/clone decision lives in the
library modules. Errors other than bad input are reported and the menu loop
continues from a stable state.
"""

from __future__ import annotations

import argparse
import getpass
import logging
import sys
from typing import Callable, List, Optional, Sequence, TypeVar

from . import __version__
from .cache import ListingCache
from .clone import CloneManager
from .exceptions import GitLabManagerError, RemoteError, ValidationError
from .http_client import GitLabAPIClient
from .repository import GroupRepository, ProjectRepository, validate_name, validate_path
from .secrets import KEYRING_ACCOUNT, KEYRING_SERVICE, SecretStore, SecretToolStore
from .session import (
    DEFAULT_CACHE_DIR,
    DEFAULT_CLONE_ROOT,
    DEFAULT_CONFIG_FILE,
    ConfigStore,
    Session,
    cache_ttl_from_env,
    validate_https_url,
)

_logger = logging.getLogger(__name__)

T = TypeVar("T")


class Prompter:
    """Terminal prompts; swap `input_fn`/`secret_fn`/`out` to script them.

    End of input (EOFError) propagates out of every prompt; the menu loop
    treats it as Quit.
    """

    def __init__(
        self,
        input_fn: Callable[[str], str] = input,
        secret_fn: Callable[[str], str] = getpass.getpass,
        out: Callable[[str], None] = print,
    ):
        self.input_fn = input_fn
        self.secret_fn = secret_fn
        self.out = out

    def ask(self, prompt: str) -> str:
        return self.input_fn(prompt)

    def ask_valid(self, prompt: str, validate: Callable[[str], str]) -> str:
        while True:
            try:
                return validate(self.ask(prompt))
            except ValidationError as e:
                self.out(f"! {e}")

    def secret(self, prompt: str) -> str:
        return self.secret_fn(prompt)

    def confirm(self, question: str) -> bool:
        return self.ask(f"{question} [y/N]: ").strip().lower() in ("y", "yes")

    def select(self, labels: Sequence[str]) -> int:
        """Show a numbered list; return the 1-based choice, 0 for cancel/empty."""
        if not labels:
            self.out("! No items found.")
            return 0
        for i, label in enumerate(labels, start=1):
            self.out(f"{i:>3}) {label}")
        while True:
            choice = self.ask(f"Select number (1-{len(labels)}), or 0 to cancel: ").strip()
            if choice.isdigit() and 0 <= int(choice) <= len(labels):
                return int(choice)
            self.out("! Invalid selection.")


class App:
    def __init__(
        self,
        *,
        config: ConfigStore,
        secrets: SecretStore,
        cache: ListingCache,
        clones: CloneManager,
        prompter: Prompter,
        client_factory: Callable[[Session], GitLabAPIClient] = GitLabAPIClient,
    ):
        self.config = config
        self.secrets = secrets
        self.cache = cache
        self.clones = clones
        self.ui = prompter
        self._client_factory = client_factory
        self.api: Optional[GitLabAPIClient] = None
        self._bind(Session(config.load()))

    def _bind(self, session: Session) -> None:
        if self.api is not None:
            self.api.close()
        self.session = session
        self.api = self._client_factory(session)
        self.groups = GroupRepository(self.api, self.cache)
        self.projects = ProjectRepository(self.api, self.cache)

    def ensure_token(self) -> None:
        token = self.secrets.lookup(KEYRING_SERVICE, KEYRING_ACCOUNT, self.session.instance_url)
        if not token:
            token = self.ui.secret("Enter GitLab Access Token (stored securely in your keyring): ").strip()
            if not token:
                raise ValidationError("Token cannot be empty.")
            self.secrets.store(KEYRING_SERVICE, KEYRING_ACCOUNT, self.session.instance_url, token)
        self._bind(self.session.reconfigure(token=token))

    def _pick(self, items: List[T], label: Callable[[T], str], repo) -> Optional[T]:
        return repo.select(self.ui.select([label(i) for i in items]))

    # -- groups ---------------------------------------------------------------

    def list_groups(self) -> None:
        for g in self.groups.list():
            self.ui.out(f"{g.id}\t{g.full_path}\t{g.name}")

    def create_group(self) -> None:
        name = self.ui.ask_valid("Group name: ", validate_name)
        path = self.ui.ask_valid("Group path (slug; lowercase letters, numbers, _ . -): ", validate_path)
        parent = self.ui.ask_valid("Parent group ID (optional, Enter for top-level): ", _validate_parent_id)
        group = self.groups.create(name, path, int(parent) if parent else None)
        self.ui.out(f"✓ Group created: {group.full_path} (id {group.id})")

    def rename_group(self) -> None:
        group = self._pick(self.groups.list(use_cache=False), lambda g: g.label(), self.groups)
        if group is None:
            return
        renamed = self.groups.rename(group.id, self.ui.ask_valid("New group name: ", validate_name))
        self.ui.out(f"✓ Group renamed to {renamed.name}")

    def delete_group(self) -> None:
        group = self._pick(self.groups.list(use_cache=False), lambda g: g.label(), self.groups)
        if group is None:
            return
        confirmed = self.ui.confirm(f"Really delete group '{group.full_path}' (id {group.id})? This cannot be undone.")
        self.ui.out("✓ Group deleted." if self.groups.delete(group.id, confirmed=confirmed) else "Cancelled.")

    # -- projects -------------------------------------------------------------

    def list_projects(self) -> None:
        for p in self.projects.list():
            self.ui.out(f"{p.id}\t{p.path_with_namespace}\t{p.last_activity_at or ''}")

    def create_project(self) -> None:
        name = self.ui.ask_valid("Project name: ", validate_name)
        namespace_id: Optional[int] = None
        if self.ui.confirm("Create under a group?"):
            namespaces = self.groups.list_namespaces()
            choice = self.ui.select([g.label() for g in namespaces])
            if choice == 0:
                return
            namespace_id = namespaces[choice - 1].id
        project, seeded = self.projects.create_and_seed(name, namespace_id=namespace_id)
        self.ui.out(f"✓ Project created (id {project.id}).")
        for path, outcome in seeded.items():
            self.ui.out(f"✓ {outcome.value.capitalize()} {path}")
        target = self.projects.resolve_clone_target(project.id, project.path_with_namespace)
        self._clone(target.url, target.path_with_namespace)

    def rename_project(self) -> None:
        project = self._pick(self.projects.list(use_cache=False), lambda p: p.label(), self.projects)
        if project is None:
            return
        renamed = self.projects.rename(project.id, self.ui.ask_valid("New project name: ", validate_name))
        self.ui.out(f"✓ Project renamed to {renamed.name}")

    def delete_project(self) -> None:
        project = self._pick(self.projects.list(use_cache=False), lambda p: p.label(), self.projects)
        if project is None:
            return
        confirmed = self.ui.confirm(
            f"Really delete project '{project.path_with_namespace}' (id {project.id})? This cannot be undone."
        )
        self.ui.out("✓ Project deleted." if self.projects.delete(project.id, confirmed=confirmed) else "Cancelled.")

    def clone_project(self) -> None:
        project = self._pick(self.projects.list(use_cache=False), lambda p: p.label(), self.projects)
        if project is None:
            return
        target = self.projects.clone_target_for(project)
        self._clone(target.url, target.path_with_namespace)

    def _clone(self, url: str, path_with_namespace: str) -> None:
        outcome = self.clones.clone_or_update(url, path_with_namespace)
        self.ui.out(f"✓ {outcome.value.capitalize()} {self.clones.destination(path_with_namespace)}")

    # -- settings -------------------------------------------------------------

    def update_token(self) -> None:
        token = self.ui.secret("Enter new GitLab token: ").strip()
        if not token:
            self.ui.out("! Token unchanged.")
            return
        self.secrets.store(KEYRING_SERVICE, KEYRING_ACCOUNT, self.session.instance_url, token)
        self._bind(self.session.reconfigure(token=token))
        self.ui.out("✓ Token updated.")

    def set_instance(self) -> None:
        url = self.ui.ask_valid("Instance URL (must start with https://): ", validate_https_url)
        self.config.save(url)
        self._bind(self.session.reconfigure(instance_url=url, token=""))
        self.cache.invalidate_all()
        self.ensure_token()
        self.ui.out(f"✓ Instance set to {self.session.instance_url}")

    def clear_cache(self) -> None:
        self.cache.invalidate_all()
        self.ui.out("✓ Cache cleared.")

    # -- menus ----------------------------------------------------------------

    def _run(self, action: Callable[[], None]) -> None:
        try:
            action()
        except RemoteError as e:
            self.ui.out(f"Error: HTTP {e.status_code} from {e.endpoint}: {e.body}")
        except GitLabManagerError as e:
            self.ui.out(f"Error: {e}")

    def _menu(self, title: str, entries: Sequence[tuple]) -> bool:
        """Loop over one menu. Returns True if the user chose Quit."""
        while True:
            self.ui.out(f"\n{title}")
            for i, (label, _) in enumerate(entries, start=1):
                self.ui.out(f"{i}) {label}")
            back, quit_ = len(entries) + 1, len(entries) + 2
            self.ui.out(f"{back}) Back\n{quit_}) Quit")
            ans = self.ui.ask("Choose: ").strip()
            if not ans.isdigit() or not 1 <= int(ans) <= quit_:
                self.ui.out("! Invalid choice.")
                continue
            if int(ans) == back:
                return False
            if int(ans) == quit_:
                return True
            self._run(entries[int(ans) - 1][1])

    def main_menu(self) -> None:
        menus = [
            ("Groups", [
                ("New Group", self.create_group),
                ("Rename Group", self.rename_group),
                ("List Groups", self.list_groups),
                ("Delete Group", self.delete_group),
            ]),
            ("Projects", [
                ("Clone Project", self.clone_project),
                ("Create Project", self.create_project),
                ("Rename Project", self.rename_project),
                ("List Projects", self.list_projects),
                ("Delete Project", self.delete_project),
            ]),
            ("Settings", [
                ("Update GitLab token", self.update_token),
                ("Set GitLab instance URL", self.set_instance),
                ("Clear cached data", self.clear_cache),
            ]),
        ]
        try:
            while True:
                self.ui.out(f"\ngitlab-manager (v{__version__}) - {self.session.instance_url}")
                for i, (title, _) in enumerate(menus, start=1):
                    self.ui.out(f"{i}) {title}")
                self.ui.out(f"{len(menus) + 1}) Quit")
                ans = self.ui.ask("Choose: ").strip()
                if ans == str(len(menus) + 1) or ans.lower() in ("q", "quit"):
                    return
                if not ans.isdigit() or not 1 <= int(ans) <= len(menus):
                    self.ui.out("! Invalid choice.")
                    continue
                title, entries = menus[int(ans) - 1]
                if self._menu(title, entries):
                    return
        except EOFError:
            # stdin closed (Ctrl-D or redirected input ran out)
            self.ui.out("")


def _validate_parent_id(value: str) -> str:
    v = value.strip()
    if v and not v.isdigit():
        raise ValidationError("Parent group ID must be a number.")
    return v


def _cli(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="gitlab-manager",
        description="Manage GitLab groups and projects, with the token kept in the system keyring.",
        epilog="Examples:\n"
               "  %(prog)s\n"
               "  %(prog)s --clone-root ~/src/gitlab --ttl 60 -v",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", default=DEFAULT_CONFIG_FILE, help=f"Config file (default: {DEFAULT_CONFIG_FILE})")
    parser.add_argument("--cache-dir", default=DEFAULT_CACHE_DIR, help=f"Listing cache directory (default: {DEFAULT_CACHE_DIR})")
    parser.add_argument("--clone-root", default=DEFAULT_CLONE_ROOT, help=f"Where projects are cloned (default: {DEFAULT_CLONE_ROOT})")
    parser.add_argument("--ttl", type=int, default=None, help="Listing cache TTL in seconds (default: $GITLAB_MANAGER_CACHE_TTL_S or 300)")
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    args = parser.parse_args(list(argv) if argv is not None else None)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(levelname)s: %(message)s")
    ttl = args.ttl if args.ttl is not None else cache_ttl_from_env()

    try:
        clones = CloneManager(args.clone_root)
        clones.ensure_root()
        app = App(
            config=ConfigStore(args.config),
            secrets=SecretToolStore(),
            cache=ListingCache(args.cache_dir, ttl_s=ttl),
            clones=clones,
            prompter=Prompter(),
        )
        app.ensure_token()
    except GitLabManagerError as e:
        _logger.error("%s", e)
        return 1
    except (KeyboardInterrupt, EOFError):
        print()
        _logger.error("No token entered; exiting.")
        return 1

    try:
        app.main_menu()
    except KeyboardInterrupt:
        print()
    finally:
        if app.api is not None:
            _logger.debug("REST stats: %s", app.api.get_rest_call_stats())
            _logger.debug("Cache stats: %s", app.cache.stats)
            app.api.close()
    return 0


def main() -> None:
    sys.exit(_cli())


if __name__ == "__main__":
    main()
