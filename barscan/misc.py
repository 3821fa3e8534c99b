"""Assorted helpers: sockets, JSON access, config lookup and string utilities."""

from __future__ import annotations

import hashlib
import json
import os
import re
import socket
from collections.abc import Iterable, Iterator, MutableMapping
from typing import Any

_RECV_CHUNK = 1024


def _ascii_upper(text: str) -> str:
    return "".join(chr(ord(c) - 32) if "a" <= c <= "z" else c for c in text)


def str_nhash(string: str) -> int:
    """Case-insensitive hash: 5381 plus the sum of upper-cased ASCII codes."""
    total = 5381
    for char in _ascii_upper(string):
        total = (total + ord(char)) & 0xFFFFFFFF
    return total


def str_nequal(first: str, second: str) -> bool:
    """Compare two strings ignoring ASCII case."""
    return _ascii_upper(first) == _ascii_upper(second)


class CaseFoldDict(MutableMapping):
    """A dict whose string keys match regardless of ASCII case."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        self._data: dict[str, tuple[str, Any]] = {}
        self.update(*args, **kwargs)

    def __getitem__(self, key: str) -> Any:
        return self._data[_ascii_upper(key)][1]

    def __setitem__(self, key: str, value: Any) -> None:
        folded = _ascii_upper(key)
        original = self._data[folded][0] if folded in self._data else key
        self._data[folded] = (original, value)

    def __delitem__(self, key: str) -> None:
        folded = _ascii_upper(key)
        if folded not in self._data:
            raise KeyError(key)
        self._data.pop(folded)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and _ascii_upper(key) in self._data

    def __iter__(self) -> Iterator[str]:
        return (original for original, _ in self._data.values())

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({dict(self.items())!r})"


def socket_connect(path: str, timeout_ms: int) -> socket.socket:
    """Connect to a unix stream socket with a receive timeout; raises OSError."""
    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    try:
        sock.connect(path)
        sock.settimeout(timeout_ms / 1000)
    except OSError:
        sock.close()
        raise
    return sock


def recv_json(sock: socket.socket, length: int) -> Any:
    """Read up to ``length`` bytes (all, if negative) and parse a JSON value."""
    chunks: list[bytes] = []
    remaining = length
    while remaining != 0:
        size = _RECV_CHUNK if remaining < 0 else min(remaining, _RECV_CHUNK)
        try:
            data = sock.recv(size)
        except (socket.timeout, OSError):
            break
        if not data:
            break
        chunks.append(data)
        if remaining > 0:
            remaining -= len(data)
    text = b"".join(chunks).decode("utf-8", errors="replace").strip()
    if not text:
        return None
    try:
        value, _ = json.JSONDecoder().raw_decode(text)
    except json.JSONDecodeError:
        return None
    return value


def file_test_read(filename: str) -> bool:
    """True if the file exists and is readable."""
    return os.path.exists(filename) and os.access(filename, os.R_OK)


def _system_data_dirs() -> list[str]:
    dirs = os.environ.get("XDG_DATA_DIRS") or "/usr/local/share:/usr/share"
    return [d for d in dirs.split(":") if d]


def _user_config_dir() -> str:
    return os.environ.get("XDG_CONFIG_HOME") or os.path.join(
        os.path.expanduser("~"), ".config"
    )


def get_xdg_config_file(
    fname: str, extra: str | None = None, confname: str | None = None
) -> str | None:
    """Locate a config file in the usual places; None if not found."""
    if fname.startswith("/"):
        return fname if file_test_read(fname) else None

    candidates = [os.path.join(".", fname)]
    if confname is not None:
        candidates.append(os.path.join(os.path.dirname(confname), fname))
    candidates.append(os.path.join(_user_config_dir(), "sfwbar", fname))
    candidates.extend(
        os.path.join(d, "sfwbar", fname) for d in _system_data_dirs()
    )
    if extra:
        candidates.append(os.path.join(extra, fname))
    return next((c for c in candidates if file_test_read(c)), None)


def _json_string(value: Any) -> str | None:
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    return json.dumps(value)


def _parse_number(text: str, integer: bool) -> float | int:
    pattern = r"\s*[+-]?\d+" if integer else r"\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?"
    match = re.match(pattern, text)
    if not match:
        return 0
    return int(match.group(0)) if integer else float(match.group(0))


def _json_int(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        return int(_parse_number(value, True))
    return 0


def _json_double(value: Any) -> float:
    if isinstance(value, (bool, int, float)):
        return float(value)
    if isinstance(value, str):
        return float(_parse_number(value, False))
    return 0.0


def _json_bool(value: Any) -> bool:
    if isinstance(value, (bool, int, float)):
        return bool(value)
    if isinstance(value, str):
        return len(value) > 0
    return False


def json_string_by_name(obj: Any, name: str) -> str | None:
    """String form of member ``name`` of ``obj``, or None."""
    if isinstance(obj, dict) and name in obj:
        return _json_string(obj[name])
    return None


def json_int_by_name(obj: Any, name: str, default: int) -> int:
    """Integer form of member ``name``, or ``default`` if absent."""
    if isinstance(obj, dict) and name in obj:
        return _json_int(obj[name])
    return default


def json_bool_by_name(obj: Any, name: str, default: bool) -> bool:
    """Boolean form of member ``name``, or ``default`` if absent or null."""
    if isinstance(obj, dict) and obj.get(name) is not None:
        return _json_bool(obj[name])
    return default


def json_double_by_name(obj: Any, name: str, default: float) -> float:
    """Float form of member ``name``, or ``default`` if absent."""
    if isinstance(obj, dict) and name in obj:
        return _json_double(obj[name])
    return default


def _glob_regex(pattern: str) -> re.Pattern[str]:
    parts = []
    for char in pattern:
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts), re.DOTALL)


def pattern_match(patterns: Iterable[str] | None, string: str) -> bool:
    """True if the string matches any '*'/'?' wildcard pattern."""
    if not patterns:
        return False
    return any(_glob_regex(p).fullmatch(string) for p in patterns)


def regex_match_list(regexes: Iterable[re.Pattern[str]], string: str) -> bool:
    """True if any compiled regex matches somewhere in the string."""
    return any(r.search(string) for r in regexes)


def md5_file(path: str) -> bytes:
    """MD5 digest of a file's contents; raises OSError if unreadable."""
    digest = hashlib.md5()
    with open(path, "rb") as handle:
        for block in iter(lambda: handle.read(_RECV_CHUNK), b""):
            digest.update(block)
    return digest.digest()


def str_replace(string: str | None, old: str | None, new: str | None) -> str | None:
    """Replace every occurrence of ``old`` with ``new``."""
    if string is None or old is None or new is None or old == "":
        return string
    return string.replace(old, new)