r"""
access.codec
~~~~~~~~~~~~
Flat-file persistence for the registry.  Four ``;``-delimited UTF-8
artifacts, one record per line:

users.csv
---------
1;Ana

environments.csv
----------------
1;Lab

permissions.csv
---------------
1;1

logs.csv
--------
1;2025-06-19 15:07:02;1;1

Inside a name ``;`` is written ``\;`` and a newline ``\n`` (a literal
backslash becomes ``\\`` and a carriage return ``\r``).  Malformed lines
are skipped on load; a missing file loads as empty.
"""

from __future__ import annotations

import logging
import os
import pathlib
import tempfile
from collections import defaultdict
from datetime import datetime
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from .models import AccessLogEntry, Environment, User

logger = logging.getLogger(__name__)

USERS_FILE = "users.csv"
ENVIRONMENTS_FILE = "environments.csv"
PERMISSIONS_FILE = "permissions.csv"
LOGS_FILE = "logs.csv"

SEP = ";"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

_ESCAPES = {";": ";", "n": "\n", "r": "\r", "\\": "\\"}


class MalformedLine(ValueError):
    pass


# ---------------------------------------------------------------------- #
# escaping
# ---------------------------------------------------------------------- #

def escape(text: str) -> str:
    return (
        text.replace("\\", "\\\\")
        .replace(SEP, "\\" + SEP)
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )


def unescape(text: str) -> str:
    return _decode(text, sep=None)[0]


def split_fields(line: str) -> List[str]:
    """Split on unescaped separators, decoding escapes in each field."""
    return _decode(line, sep=SEP)


def _decode(text: str, sep: Optional[str]) -> List[str]:
    fields: List[str] = []
    buf: List[str] = []
    i, n = 0, len(text)
    while i < n:
        ch = text[i]
        if ch == "\\" and i + 1 < n:
            nxt = text[i + 1]
            buf.append(_ESCAPES.get(nxt, ch + nxt))
            i += 2
            continue
        if ch == sep:
            fields.append("".join(buf))
            buf = []
        else:
            buf.append(ch)
        i += 1
    fields.append("".join(buf))
    return fields


# ---------------------------------------------------------------------- #
# per-record encode / decode
# ---------------------------------------------------------------------- #

def encode_named(record_id: int, name: str) -> str:
    return f"{record_id}{SEP}{escape(name)}"


def decode_named(line: str) -> Tuple[int, str]:
    record_id, name = _fields(line, 2)
    return _int(record_id), name


def encode_permission(user_id: int, environment_id: int) -> str:
    return f"{user_id}{SEP}{environment_id}"


def decode_permission(line: str) -> Tuple[int, int]:
    user_id, environment_id = _fields(line, 2)
    return _int(user_id), _int(environment_id)


def encode_log(environment_id: int, entry: AccessLogEntry) -> str:
    flag = 1 if entry.granted else 0
    return SEP.join(
        (str(environment_id), entry.timestamp.strftime(TIMESTAMP_FORMAT), str(entry.user_id), str(flag))
    )


def decode_log(line: str) -> Tuple[int, AccessLogEntry]:
    environment_id, ts, user_id, flag = _fields(line, 4)
    try:
        timestamp = datetime.strptime(ts, TIMESTAMP_FORMAT)
    except ValueError as e:
        raise MalformedLine(f"bad timestamp {ts!r}") from e
    return _int(environment_id), AccessLogEntry(timestamp, _int(user_id), _int(flag) == 1)


def _fields(line: str, count: int) -> List[str]:
    parts = split_fields(line)
    if len(parts) != count:
        raise MalformedLine(f"expected {count} fields, got {len(parts)}")
    return parts


def _int(raw: str) -> int:
    try:
        return int(raw)
    except ValueError as e:
        raise MalformedLine(f"bad integer {raw!r}") from e


# ---------------------------------------------------------------------- #
# store
# ---------------------------------------------------------------------- #

class FlatFileStore:
    def __init__(self, directory: str | pathlib.Path | None = None):
        self.directory = pathlib.Path(directory) if directory else pathlib.Path.cwd()

    # ------------------------------------------------------------------ #
    # public
    # ------------------------------------------------------------------ #

    def load(self) -> Tuple[List[User], List[Environment]]:
        users: Dict[int, User] = {}
        for user_id, name in self._read(USERS_FILE, decode_named):
            users.setdefault(user_id, User(user_id, name))

        environments: Dict[int, Environment] = {}
        for env_id, name in self._read(ENVIRONMENTS_FILE, decode_named):
            environments.setdefault(env_id, Environment(env_id, name))

        for user_id, env_id in self._read(PERMISSIONS_FILE, decode_permission):
            if user_id in users and env_id in environments:
                users[user_id].grant(env_id)
            else:
                logger.debug("dropping permission %s;%s (unknown id)", user_id, env_id)

        history: Dict[int, List[AccessLogEntry]] = defaultdict(list)
        for env_id, entry in self._read(LOGS_FILE, decode_log):
            history[env_id].append(entry)
        for env_id, entries in history.items():
            env = environments.get(env_id)
            if env is None:
                logger.debug("dropping %d log entries for unknown environment %s", len(entries), env_id)
                continue
            env.logs.replace_from_history(entries)

        return list(users.values()), list(environments.values())

    def save(self, users: Sequence[User], environments: Sequence[Environment]) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        self._write(USERS_FILE, (encode_named(u.id, u.name) for u in users))
        self._write(ENVIRONMENTS_FILE, (encode_named(e.id, e.name) for e in environments))
        self._write(
            PERMISSIONS_FILE,
            (encode_permission(u.id, env_id) for u in users for env_id in u.permissions),
        )
        self._write(
            LOGS_FILE,
            (encode_log(e.id, entry) for e in environments for entry in e.logs.snapshot()),
        )

    # ------------------------------------------------------------------ #
    # private
    # ------------------------------------------------------------------ #

    def _read(self, filename: str, decode: Callable[[str], tuple]) -> Iterator[tuple]:
        path = self.directory / filename
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return

        # universal newlines already folded \r\n; names never hold a raw \n
        for lineno, ln in enumerate(text.split("\n"), 1):
            if not ln.strip():
                continue
            try:
                yield decode(ln)
            except MalformedLine as e:
                logger.debug("%s:%d skipped: %s", filename, lineno, e)

    def _write(self, filename: str, lines: Iterable[str]) -> None:
        path = self.directory / filename
        fd, tmp = tempfile.mkstemp(prefix=f".{filename}.", dir=self.directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                for ln in lines:
                    fh.write(ln + "\n")
            os.replace(tmp, path)
        except BaseException:
            pathlib.Path(tmp).unlink(missing_ok=True)
            raise

