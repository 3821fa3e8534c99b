"""Variables scanned from files, command output and JSON, with value tracking."""

from __future__ import annotations

import enum
import glob
import json
import os
import re
import shlex
import subprocess
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from barscan.jpath import JPathError, jpath_parse
from barscan.misc import CaseFoldDict, _json_string, _parse_number


class Source(enum.IntEnum):
    """Where a scanned file's data comes from."""

    FILE = 0
    EXEC = 1
    CLIENT = 2


class FileFlag(enum.IntFlag):
    """Options that change how a scanned file is read."""

    NONE = 0
    CHTIME = 1
    NOGLOB = 2


class VarType(enum.Enum):
    """How a variable extracts its value."""

    REGEX = enum.auto()
    JSON = enum.auto()
    GRAB = enum.auto()
    SET = enum.auto()


class Multi(enum.Enum):
    """How a variable combines several values found in one scan."""

    SUM = enum.auto()
    PRODUCT = enum.auto()
    LASTW = enum.auto()
    FIRST = enum.auto()
    LAST = enum.auto()


def _now_us() -> int:
    return time.monotonic_ns() // 1000


def _strtod(text: str) -> float:
    return float(_parse_number(text, False))


@dataclass(eq=False)
class ScanFile:
    """A source of lines that one or more variables are scanned from."""

    fname: str | None
    source: Source = Source.FILE
    flags: FileFlag = FileFlag.NONE
    trigger: str | None = None
    mtime: float = 0.0
    vars: list[ScanVar] = field(default_factory=list)
    client: Any = None


@dataclass(eq=False)
class ScanVar:
    """A scanned variable: its latest string and numeric value and history."""

    var_type: VarType
    multi: Multi = Multi.LAST
    file: ScanFile | None = None
    definition: Any = None
    text: str | None = None
    vstate: bool = False
    val: float = 0.0
    pval: float = 0.0
    time: int = 0
    ptime: int = 0
    count: int = 0
    invalid: bool = True
    inuse: bool = False

    def reset(self) -> None:
        """Start a new scan cycle, keeping the previous value in ``pval``."""
        now = _now_us()
        self.pval = self.val
        self.count = 0
        self.val = 0.0
        self.time = now - self.ptime
        self.ptime = now

    def values_update(self, value: str | None) -> None:
        """Fold one newly scanned value into the variable."""
        if value is None:
            return
        if self.multi is not Multi.FIRST or not self.count:
            self.text = value
            if self.multi is Multi.SUM:
                self.val += _strtod(value)
            elif self.multi is Multi.PRODUCT:
                self.val *= _strtod(value)
            elif self.multi is Multi.LASTW:
                self.val = _strtod(value)
            elif self.multi is Multi.FIRST:
                self.val = _strtod(value)
            self.count += 1
        self.invalid = False


def parse_identifier(ident: str | None) -> tuple[str | None, str | None]:
    """Split ``$name.field`` into the name and the field (default ``.val``)."""
    if ident is None:
        return None, None
    if ident.startswith("$"):
        ident = ident[1:]
    name, dot, rest = ident.partition(".")
    return name, (dot + rest) if dot else ".val"


class Scanner:
    """Registry of scanned files and variables."""

    def __init__(self, evaluate: Callable[[str], str | None] | None = None) -> None:
        self._evaluate = evaluate
        self.files: list[ScanFile] = []
        self.variables: CaseFoldDict = CaseFoldDict()
        self.triggers: CaseFoldDict = CaseFoldDict()

    def file_attach(self, trigger: str, file: ScanFile) -> None:
        """Associate a trigger name with a file."""
        self.triggers[trigger] = file

    def file_get(self, trigger: str) -> ScanFile | None:
        """File associated with a trigger name, if any."""
        return self.triggers.get(trigger)

    def file_new(
        self,
        source: Source,
        fname: str,
        trigger: str | None = None,
        flags: FileFlag = FileFlag.NONE,
    ) -> ScanFile:
        """Return the file for ``fname``, creating it if needed, and configure it."""
        existing = None
        if source != Source.CLIENT:
            existing = next((f for f in self.files if f.fname == fname), None)
        if existing is None:
            existing = ScanFile(fname=fname)
            self.files.append(existing)
        file = existing

        file.source = Source(source)
        file.flags = FileFlag(flags)
        if file.fname is not None and "*" not in file.fname and "?" not in file.fname:
            file.flags |= FileFlag.NOGLOB

        if file.trigger != trigger:
            if file.trigger is not None:
                self.triggers.pop(file.trigger, None)
            file.trigger = trigger
            if trigger is not None:
                self.file_attach(trigger, file)
        return file

    def var_new(
        self,
        name: str | None,
        file: ScanFile | None,
        pattern: str | None,
        var_type: VarType,
        multi: Multi = Multi.LAST,
    ) -> ScanVar | None:
        """Define (or redefine) a variable; returns it, or None if refused."""
        if name is None:
            return None
        old = self.variables.get(name)
        if old is not None and var_type is not VarType.SET and old.file is not file:
            return None

        var = old if old is not None else ScanVar(var_type=var_type)
        var.file = file
        var.var_type = var_type
        var.multi = multi
        var.invalid = True

        if var_type is VarType.SET:
            var.definition = pattern
            var.vstate = True
        elif var_type is VarType.JSON:
            var.definition = pattern
        elif var_type is VarType.REGEX:
            try:
                var.definition = re.compile(pattern) if pattern is not None else None
            except re.error:
                var.definition = None

        if file is not None and old is None:
            file.vars.append(var)
        if old is None:
            self.variables[name] = var
        return var

    def invalidate(self) -> None:
        """Mark every variable not fed by a client as out of date."""
        for var in self.variables.values():
            if var.file is None or var.file.source != Source.CLIENT:
                var.invalid = True

    def update_json(self, obj: Any, file: ScanFile) -> None:
        """Feed the file's JSON variables from a parsed JSON document."""
        for var in file.vars:
            if var.var_type is not VarType.JSON:
                continue
            try:
                matches = jpath_parse(var.definition, obj)
            except JPathError:
                continue
            for item in matches or ():
                var.values_update(_json_string(item))

    def file_update(self, stream: Iterable[str], file: ScanFile) -> int:
        """Scan lines from ``stream`` into the file's variables; returns chars read."""
        size = 0
        json_lines: list[str] | None = None
        for line in stream:
            size += len(line)
            for var in file.vars:
                if var.var_type is VarType.REGEX:
                    match = var.definition.search(line) if var.definition else None
                    if match and match.re.groups >= 1:
                        var.values_update(match.group(1) or "")
                elif var.var_type is VarType.GRAB:
                    var.values_update(line)
                elif var.var_type is VarType.JSON and json_lines is None:
                    json_lines = []
            if json_lines is not None:
                json_lines.append(line)

        if json_lines is not None:
            text = "".join(json_lines).strip()
            try:
                obj, _ = json.JSONDecoder().raw_decode(text)
            except json.JSONDecodeError:
                obj = None
            self.update_json(obj, file)

        for var in file.vars:
            var.invalid = False
            var.vstate = True
        return size

    def file_exec(self, file: ScanFile) -> bool:
        """Run the file's command and scan its output; False if it can't start."""
        try:
            argv = shlex.split(file.fname or "")
        except ValueError:
            return False
        if not argv:
            return False
        try:
            proc = subprocess.Popen(
                argv, stdout=subprocess.PIPE, text=True, errors="replace"
            )
        except OSError:
            return False
        with proc:
            for var in file.vars:
                var.reset()
            self.file_update(proc.stdout, file)
        return True

    def file_glob(self, file: ScanFile | None) -> bool:
        """Refresh all variables of a file (expanding wildcards); False on failure."""
        if file is None or file.source == Source.CLIENT or not file.fname:
            return False
        if file.source == Source.EXEC:
            return self.file_exec(file)
        if file.flags & FileFlag.NOGLOB or file.source != Source.FILE:
            paths = [file.fname]
        else:
            paths = glob.glob(file.fname)
            if not paths:
                return False

        if file.flags & FileFlag.CHTIME and file.mtime >= self._latest_mtime(paths):
            return True

        reset = False
        for path in paths:
            try:
                handle = open(path, encoding="utf-8", errors="replace")
            except OSError:
                continue
            with handle:
                if not reset:
                    reset = True
                    for var in file.vars:
                        var.reset()
                self.file_update(handle, file)
            try:
                file.mtime = os.stat(path).st_mtime
            except OSError:
                pass
        return True

    @staticmethod
    def _latest_mtime(paths: Iterable[str]) -> float:
        latest = 0.0
        for path in paths:
            try:
                latest = max(latest, os.stat(path).st_mtime)
            except OSError:
                continue
        return latest

    def var_update(self, name: str | None, update: bool) -> ScanVar | None:
        """Look up a variable, refreshing it first if ``update`` and it is stale."""
        if name is None:
            return None
        var = self.variables.get(name)
        if var is None:
            return None
        if not update or not var.invalid:
            return var

        if var.var_type is VarType.SET:
            if not var.inuse:
                var.inuse = True
                try:
                    value = (
                        self._evaluate(var.definition)
                        if self._evaluate is not None and var.definition is not None
                        else None
                    )
                finally:
                    var.inuse = False
                var.reset()
                var.values_update(value)
                var.invalid = False
        else:
            self.file_glob(var.file)
            var.vstate = True
        return var

    def get_value(self, ident: str, update: bool = True) -> str | float:
        """Value of ``$name`` (string) or ``name.field`` (number)."""
        name, fname = parse_identifier(ident)
        var = self.var_update(name, update)
        is_string = ident.startswith("$")
        if var is None:
            return "" if is_string else 0.0
        if is_string:
            return var.text if var.text is not None else ""
        if fname == ".val":
            return float(var.val)
        if fname == ".pval":
            return float(var.pval)
        if fname == ".count":
            return float(var.count)
        if fname == ".time":
            return float(var.time)
        if fname == ".age":
            return float(_now_us() - var.ptime)
        return 0.0

    def is_variable(self, identifier: str) -> bool:
        """True if the identifier names a defined variable."""
        name, _ = parse_identifier(identifier)
        return name is not None and name in self.variables