"""A small JSON path language: separator-led keys, indices and [filters]."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from barscan.misc import _json_double, _json_int, _json_string


class JPathError(ValueError):
    """Raised for a malformed JSON path."""


@dataclass(frozen=True)
class _Token:
    kind: str  # char, string, int, float, eof
    value: Any = None


_EOF = _Token("eof")
_ID_FIRST = set("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ_")
_ID_NTH = _ID_FIRST | set("0123456789")
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "\\": "\\", '"': '"'}


class _Lexer:
    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def peek(self) -> _Token:
        saved = self.pos
        token = self.next()
        self.pos = saved
        return token

    def next(self, scan_float: bool = False) -> _Token:
        text = self.text
        while self.pos < len(text) and text[self.pos] in " \t\n":
            self.pos += 1
        if self.pos >= len(text):
            return _EOF
        char = text[self.pos]
        if char in _ID_FIRST:
            start = self.pos
            while self.pos < len(text) and text[self.pos] in _ID_NTH:
                self.pos += 1
            return _Token("string", text[start:self.pos].lower())
        if char in "'\"":
            return self._string(char)
        if char.isdigit():
            return self._number(scan_float)
        self.pos += 1
        return _Token("char", char)

    def _string(self, quote: str) -> _Token:
        text = self.text
        self.pos += 1
        out = []
        while self.pos < len(text) and text[self.pos] != quote:
            char = text[self.pos]
            if quote == '"' and char == "\\" and self.pos + 1 < len(text):
                self.pos += 1
                char = _ESCAPES.get(text[self.pos], text[self.pos])
            out.append(char)
            self.pos += 1
        if self.pos >= len(text):
            raise JPathError("unterminated string in json path")
        self.pos += 1
        return _Token("string", "".join(out))

    def _number(self, scan_float: bool) -> _Token:
        text = self.text
        start = self.pos
        if text.startswith(("0x", "0X"), start):
            self.pos += 2
            while self.pos < len(text) and text[self.pos] in "0123456789abcdefABCDEF":
                self.pos += 1
            return _Token("int", int(text[start + 2:self.pos] or "0", 16))
        while self.pos < len(text) and text[self.pos].isdigit():
            self.pos += 1
        if scan_float and self.pos < len(text) and text[self.pos] == ".":
            self.pos += 1
            while self.pos < len(text) and text[self.pos].isdigit():
                self.pos += 1
            return _Token("float", float(text[start:self.pos]))
        return _Token("int", int(text[start:self.pos]))


def _filter_test(
    idx: int, key: str | None, value: _Token | None, obj: Any, selector: _Token
) -> bool:
    if selector.kind == "char":
        return True
    if selector.kind == "int":
        return idx == selector.value
    if not isinstance(obj, dict) or key not in obj:
        return False
    if value is None:
        return True
    member = obj[key]
    if value.kind == "string":
        found = _json_string(member)
        return found is not None and found.lower() == str(value.value).lower()
    if value.kind == "int":
        return value.value == _json_int(member)
    if value.kind == "float":
        return value.value == _json_double(member)
    return False


def _filter(lexer: _Lexer, cur: list[Any]) -> list[Any]:
    selector = lexer.next()
    key = None
    value = None
    if selector.kind == "string":
        key = selector.value
        if lexer.peek() == _Token("char", "="):
            lexer.next()
            value = lexer.next(scan_float=True)
    elif selector == _Token("char", "]"):
        pass
    elif selector.kind != "int":
        return []

    result = []
    for item in cur:
        if isinstance(item, list):
            result.extend(
                el for j, el in enumerate(item)
                if _filter_test(j, key, value, el, selector)
            )
        elif _filter_test(-1, key, value, item, selector):
            result.append(item)

    if selector.kind in ("string", "int") and lexer.next() != _Token("char", "]"):
        raise JPathError("missing ']'")
    return result


def _key(name: str, cur: list[Any]) -> list[Any]:
    result = []
    for item in cur:
        members = item if isinstance(item, list) else [item]
        result.extend(m[name] for m in members if isinstance(m, dict) and name in m)
    return result


def _index(idx: int, cur: list[Any]) -> list[Any]:
    return [
        item[idx] if idx < len(item) else None
        for item in cur
        if isinstance(item, list)
    ]


def jpath_parse(path: str | None, obj: Any) -> list[Any] | None:
    """Evaluate a path such as ``.items.[name='x'].value`` against ``obj``.

    The first character of the path is the separator. Returns a list of
    matches, or None when the path or object is missing or the path does not
    start with a separator character.
    """
    if path is None or obj is None:
        return None
    lexer = _Lexer(path)
    first = lexer.next()
    if first.kind != "char":
        return None
    sep = _Token("char", first.value)

    cur = obj if isinstance(obj, list) else [obj]
    while True:
        token = lexer.next()
        if token == _Token("char", "["):
            cur = _filter(lexer, cur)
        elif token.kind == "string":
            cur = _key(token.value, cur)
        elif token.kind == "int":
            cur = _index(token.value, cur)
        else:
            raise JPathError(f"invalid token in json path: {token.value!r}")
        if lexer.next() != sep:
            break
    return list(cur)