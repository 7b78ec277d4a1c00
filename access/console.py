"""
access.console
~~~~~~~~~~~~~~
Interactive operator menu on top of the registry.  Reads choices from a
text stream, prints results, saves on exit.
"""

from __future__ import annotations

import logging
import sys
from typing import Callable, Dict, Optional, TextIO

from .config import Config
from .logger import AuditLogger
from .registry import Registry, Removal

logger = logging.getLogger(__name__)

MENU = """\
0. Exit (save)
1. Add environment
2. Show environment
3. Remove environment
4. Add user
5. Show user
6. Remove user
7. Grant permission
8. Revoke permission
9. Record access
10. Show access logs (by environment)
11. Save now"""

_LOG_FILTERS = {"1": None, "2": True, "3": False}


class EndOfInput(Exception):
    pass


def run_console(config: Config, stdin: TextIO = sys.stdin, stdout: TextIO = sys.stdout) -> int:
    logging.basicConfig(level=config.log_level, format="%(levelname)s %(name)s: %(message)s")
    audit = AuditLogger(config.audit_log_path) if config.audit_enabled else None
    registry = Registry(config.data_dir, audit=audit)
    try:
        registry.load_all()
    except (OSError, UnicodeDecodeError) as e:
        if audit:
            audit.load_failed(config.data_dir, e)
        print(f"▸ Could not load data from {config.data_dir}: {e}", file=stdout)
        return 1

    console = Console(registry, stdin, stdout)
    try:
        saved = console.loop()
    except KeyboardInterrupt:
        print("\n▸ Interrupted.", file=stdout)
        saved = console.save()
    finally:
        if audit:
            audit.close()
    return 0 if saved else 1


class Console:
    def __init__(self, registry: Registry, stdin: TextIO, stdout: TextIO) -> None:
        self.registry = registry
        self.stdin = stdin
        self.stdout = stdout
        self._actions: Dict[str, Callable[[], None]] = {
            "1": self.add_environment,
            "2": self.show_environment,
            "3": self.remove_environment,
            "4": self.add_user,
            "5": self.show_user,
            "6": self.remove_user,
            "7": self.grant,
            "8": self.revoke,
            "9": self.record_access,
            "10": self.show_logs,
            "11": self.save,
        }

    # ------------------------------------------------------------------ #
    # loop
    # ------------------------------------------------------------------ #

    def loop(self) -> bool:
        """Run until exit or end of input; return whether the final save worked."""
        while True:
            self._say("=== ACCESS REGISTRY ===")
            self._say(f"Users: {len(self.registry.users)}")
            self._say(f"Environments: {len(self.registry.environments)}")
            self._say(MENU)
            try:
                choice = self._ask("Choose an option: ").strip()
                if choice == "0":
                    break
                action = self._actions.get(choice)
                if action is None:
                    self._say("Invalid option.")
                    continue
                action()
            except EndOfInput:
                break
        if not self.save():
            return False
        self._say("Data saved. Bye.")
        return True

    def save(self) -> bool:
        try:
            self.registry.save_all()
        except OSError as e:
            logger.error("save to %s failed: %s", self.registry.store.directory, e)
            if self.registry.audit:
                self.registry.audit.save_failed(self.registry.store.directory, e)
            self._say(f"Could not save data: {e}")
            return False
        return True

    # ------------------------------------------------------------------ #
    # environments
    # ------------------------------------------------------------------ #

    def add_environment(self) -> None:
        name = self._ask("Environment name: ")
        env = self.registry.add_environment(self.registry.next_environment_id(), name)
        self._say(f"Environment [{env.id}] {env.name} added.")

    def show_environment(self) -> None:
        env = self._environment()
        if env is None:
            return
        self._say(str(env))
        logs = env.logs.snapshot()
        self._say(f"Logs (last {len(logs)}):")
        for entry in logs:
            self._say(f"  {entry}")

    def remove_environment(self) -> None:
        env_id = self._ask_id("Environment id: ")
        if env_id is None:
            return
        if self.registry.remove_environment(env_id):
            self._say("Environment removed.")
        else:
            self._say("Environment not found.")

    # ------------------------------------------------------------------ #
    # users
    # ------------------------------------------------------------------ #

    def add_user(self) -> None:
        name = self._ask("User name: ")
        user = self.registry.add_user(self.registry.next_user_id(), name)
        self._say(f"User [{user.id}] {user.name} added.")

    def show_user(self) -> None:
        user_id = self._ask_id("User id: ")
        if user_id is None:
            return
        user = self.registry.find_user(user_id)
        self._say(str(user) if user else "User not found.")

    def remove_user(self) -> None:
        user_id = self._ask_id("User id: ")
        if user_id is None:
            return
        result = self.registry.remove_user(user_id)
        if result is Removal.REMOVED:
            self._say("User removed.")
        elif result is Removal.BLOCKED:
            self._say("User still holds permissions; revoke them first.")
        else:
            self._say("User not found.")

    # ------------------------------------------------------------------ #
    # permissions & access
    # ------------------------------------------------------------------ #

    def grant(self) -> None:
        pair = self._ask_pair()
        if pair is None:
            return
        if self.registry.grant_permission(*pair):
            self._say("Permission granted.")
        else:
            self._say("User already holds this permission.")

    def revoke(self) -> None:
        pair = self._ask_pair()
        if pair is None:
            return
        if self.registry.revoke_permission(*pair):
            self._say("Permission revoked.")
        else:
            self._say("User does not hold this permission.")

    def record_access(self) -> None:
        env_id = self._ask_id("Environment id: ")
        if env_id is None:
            return
        user_id = self._ask_id("User id: ")
        if user_id is None:
            return
        granted = self.registry.record_access(env_id, user_id)
        self._say("Access GRANTED." if granted else "Access DENIED.")

    def show_logs(self) -> None:
        env = self._environment()
        if env is None:
            return
        sel = self._ask("Filter logs? (1 - all, 2 - granted, 3 - denied): ").strip()
        self._say(f"Logs of environment [{env.id}] {env.name}:")
        for entry in env.logs.filter(_LOG_FILTERS.get(sel)):
            user = self.registry.find_user(entry.user_id)
            who = user.name if user else f"user id {entry.user_id}"
            outcome = "GRANTED" if entry.granted else "DENIED"
            self._say(f"  {entry.timestamp:%Y-%m-%d %H:%M:%S} - {who} - {outcome}")

    # ------------------------------------------------------------------ #
    # private
    # ------------------------------------------------------------------ #

    def _environment(self):
        env_id = self._ask_id("Environment id: ")
        if env_id is None:
            return None
        env = self.registry.find_environment(env_id)
        if env is None:
            self._say("Environment not found.")
        return env

    def _ask_pair(self):
        user_id = self._ask_id("User id: ")
        if user_id is None:
            return None
        env_id = self._ask_id("Environment id: ")
        if env_id is None:
            return None
        if self.registry.find_user(user_id) is None or self.registry.find_environment(env_id) is None:
            self._say("User or environment not found.")
            return None
        return user_id, env_id

    def _ask_id(self, prompt: str) -> Optional[int]:
        raw = self._ask(prompt)
        try:
            return int(raw)
        except ValueError:
            self._say("Invalid id.")
            return None

    def _ask(self, prompt: str) -> str:
        self.stdout.write(prompt)
        self.stdout.flush()
        line = self.stdin.readline()
        if not line:
            raise EndOfInput()
        return line.rstrip("\r\n")

    def _say(self, text: str) -> None:
        print(text, file=self.stdout)
