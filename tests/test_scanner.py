import io
import os
import shlex
import sys

import pytest

from barscan.scanner import (
    FileFlag,
    Multi,
    Scanner,
    ScanVar,
    Source,
    VarType,
    parse_identifier,
)


@pytest.mark.parametrize(
    "ident, expected",
    [
        ("$foo.count", ("foo", ".count")),
        ("bar", ("bar", ".val")),
        ("baz.pval", ("baz", ".pval")),
        (None, (None, None)),
    ],
)
def test_parse_identifier(ident, expected):
    assert parse_identifier(ident) == expected


def test_values_update_sum():
    var = ScanVar(var_type=VarType.GRAB, multi=Multi.SUM)
    var.reset()
    var.values_update("2")
    var.values_update("3")
    assert var.val == 2.0 + 3.0
    assert var.count == 2
    assert var.text == "3"


def test_values_update_first_keeps_first():
    var = ScanVar(var_type=VarType.GRAB, multi=Multi.FIRST)
    var.reset()
    var.values_update("7")
    var.values_update("9")
    assert var.text == "7"
    assert var.val == 7.0
    assert var.count == 1


def test_values_update_lastw_and_product():
    lastw = ScanVar(var_type=VarType.GRAB, multi=Multi.LASTW)
    lastw.values_update("7")
    lastw.values_update("9")
    assert lastw.val == 9.0
    product = ScanVar(var_type=VarType.GRAB, multi=Multi.PRODUCT)
    product.reset()
    product.values_update("4")
    assert product.val == 0.0


def test_values_update_none_ignored():
    var = ScanVar(var_type=VarType.GRAB)
    var.values_update(None)
    assert var.count == 0
    assert var.invalid is True


def test_reset_moves_val_to_pval():
    var = ScanVar(var_type=VarType.GRAB, multi=Multi.LASTW)
    var.values_update("5")
    var.reset()
    assert var.pval == 5.0
    assert var.val == 0.0
    assert var.count == 0


def test_file_new_dedupes_and_sets_noglob():
    scanner = Scanner()
    first = scanner.file_new(Source.FILE, "/proc/stat", None, FileFlag.NONE)
    second = scanner.file_new(Source.FILE, "/proc/stat", None, FileFlag.CHTIME)
    assert first is second
    assert second.flags & FileFlag.NOGLOB
    assert second.flags & FileFlag.CHTIME
    wild = scanner.file_new(Source.FILE, "/tmp/*.log", None, FileFlag.NONE)
    assert not wild.flags & FileFlag.NOGLOB


def test_file_new_client_not_deduped():
    scanner = Scanner()
    a = scanner.file_new(Source.CLIENT, "sock", None, FileFlag.NONE)
    b = scanner.file_new(Source.CLIENT, "sock", None, FileFlag.NONE)
    assert a is not b


def test_triggers_case_insensitive_and_replaced():
    scanner = Scanner()
    file = scanner.file_new(Source.FILE, "f", "mpd", FileFlag.NONE)
    assert scanner.file_get("MPD") is file
    scanner.file_new(Source.FILE, "f", "other", FileFlag.NONE)
    assert scanner.file_get("mpd") is None
    assert scanner.file_get("Other") is file


def test_regex_variable_from_file(tmp_path):
    path = tmp_path / "data.txt"
    path.write_text("alpha 1\ncpu 42\nbeta 3\n")
    scanner = Scanner()
    file = scanner.file_new(Source.FILE, str(path), None, FileFlag.NONE)
    scanner.var_new("cpu", file, r"^cpu (\d+)", VarType.REGEX, Multi.LASTW)
    assert scanner.get_value("$cpu") == "42"
    assert scanner.get_value("cpu") == 42.0
    assert scanner.get_value("cpu.count") == 1.0


def test_file_update_grab_counts_lines():
    scanner = Scanner()
    file = scanner.file_new(Source.CLIENT, "x", None, FileFlag.NONE)
    var = scanner.var_new("g", file, None, VarType.GRAB, Multi.LAST)
    lines = ["one\n", "two\n"]
    size = scanner.file_update(io.StringIO("".join(lines)), file)
    assert size == sum(len(line) for line in lines)
    assert var.count == len(lines)
    assert var.text == "two\n"
    assert var.invalid is False


def test_json_variable(tmp_path):
    path = tmp_path / "d.json"
    path.write_text('{"a": {"b": "hello"}}\n')
    scanner = Scanner()
    file = scanner.file_new(Source.FILE, str(path), None, FileFlag.NONE)
    scanner.var_new("j", file, ".a.b", VarType.JSON, Multi.LAST)
    assert scanner.get_value("$j") == "hello"


def test_invalidate_skips_client_vars():
    scanner = Scanner()
    client = scanner.file_new(Source.CLIENT, "c", None, FileFlag.NONE)
    plain = scanner.file_new(Source.FILE, "p", None, FileFlag.NONE)
    cvar = scanner.var_new("c", client, None, VarType.GRAB)
    pvar = scanner.var_new("p", plain, None, VarType.GRAB)
    cvar.invalid = False
    pvar.invalid = False
    scanner.invalidate()
    assert cvar.invalid is False
    assert pvar.invalid is True


def test_var_new_refuses_redefinition_from_other_file():
    scanner = Scanner()
    a = scanner.file_new(Source.FILE, "a", None, FileFlag.NONE)
    b = scanner.file_new(Source.FILE, "b", None, FileFlag.NONE)
    var = scanner.var_new("v", a, None, VarType.GRAB)
    assert scanner.var_new("V", b, None, VarType.GRAB) is None
    assert var.file is a
    assert a.vars == [var]
    assert b.vars == []


def test_set_variable_uses_evaluator():
    calls = []

    def evaluate(expr):
        calls.append(expr)
        return "12"

    scanner = Scanner(evaluate)
    scanner.var_new("x", None, "1+11", VarType.SET, Multi.LASTW)
    assert scanner.get_value("$x") == "12"
    assert scanner.get_value("x", False) == 12.0
    assert calls == ["1+11"]


def test_unknown_variable_defaults():
    scanner = Scanner()
    assert scanner.get_value("$nope") == ""
    assert scanner.get_value("nope") == 0.0
    assert scanner.is_variable("nope") is False


def test_is_variable_ignores_prefix_and_field():
    scanner = Scanner()
    scanner.var_new("Foo", None, "1", VarType.SET)
    assert scanner.is_variable("$foo.val") is True


def test_file_exec_reads_command_output():
    scanner = Scanner()
    cmd = f"{shlex.quote(sys.executable)} -c 'print(42)'"
    file = scanner.file_new(Source.EXEC, cmd, None, FileFlag.NONE)
    scanner.var_new("out", file, None, VarType.GRAB, Multi.SUM)
    assert scanner.get_value("out") == 42.0


def test_file_exec_missing_command_fails():
    scanner = Scanner()
    file = scanner.file_new(Source.EXEC, "/nonexistent/prog", None, FileFlag.NONE)
    assert scanner.file_exec(file) is False


def test_file_glob_no_match_and_client():
    scanner = Scanner()
    wild = scanner.file_new(Source.FILE, "/nonexistent/dir/*.x", None, FileFlag.NONE)
    client = scanner.file_new(Source.CLIENT, "c", None, FileFlag.NONE)
    assert scanner.file_glob(wild) is False
    assert scanner.file_glob(client) is False
    assert scanner.file_glob(None) is False


def test_file_glob_wildcard_reads_all(tmp_path):
    (tmp_path / "a.log").write_text("1\n")
    (tmp_path / "b.log").write_text("2\n")
    scanner = Scanner()
    file = scanner.file_new(Source.FILE, str(tmp_path / "*.log"), None, FileFlag.NONE)
    var = scanner.var_new("n", file, r"(\d+)", VarType.REGEX, Multi.SUM)
    assert scanner.file_glob(file) is True
    assert var.count == 2
    assert var.val == 1.0 + 2.0


def test_chtime_skips_unchanged_file(tmp_path):
    path = tmp_path / "f.txt"
    path.write_text("v 1\n")
    scanner = Scanner()
    file = scanner.file_new(Source.FILE, str(path), None, FileFlag.CHTIME)
    scanner.var_new("v", file, r"v (\d+)", VarType.REGEX, Multi.LASTW)
    assert scanner.get_value("$v") == "1"
    stat = os.stat(path)
    path.write_text("v 2\n")
    os.utime(path, ns=(stat.st_atime_ns, stat.st_mtime_ns))
    scanner.invalidate()
    assert scanner.get_value("$v") == "1"


def test_get_value_without_update_does_not_read(tmp_path):
    path = tmp_path / "f.txt"
    path.write_text("v 5\n")
    scanner = Scanner()
    file = scanner.file_new(Source.FILE, str(path), None, FileFlag.NONE)
    scanner.var_new("v", file, r"v (\d+)", VarType.REGEX, Multi.LASTW)
    assert scanner.get_value("$v", False) == ""
    assert scanner.get_value("$v", True) == "5"