# barscan

Building blocks for a desktop status bar that gathers its values from files,
commands and JSON documents and lays its items out on a grid.

## Modules

- `barscan.misc`: JSON member lookups with defaults (`json_string_by_name`,
  `json_int_by_name`, `json_bool_by_name`, `json_double_by_name`), config
  file lookup in the current directory, next to a given config file, under
  `$XDG_CONFIG_HOME/sfwbar`, under each `$XDG_DATA_DIRS` entry's `sfwbar`
  directory and in an extra directory (`get_xdg_config_file`), Unix socket
  helpers (`socket_connect`, `recv_json`), wildcard and regex matching
  (`pattern_match`, `regex_match_list`), `md5_file`, `str_replace`,
  `str_nhash`/`str_nequal`, and `CaseFoldDict`, a mapping whose string keys
  match regardless of ASCII case.
- `barscan.jpath`: `jpath_parse(path, obj)` runs a small path language over
  decoded JSON. The first character of the path is the separator, and every
  step is preceded by it: keys, integer indices and `[...]` filters
  (`[]` for all elements, `[n]` for an index, `[key]` for members that have
  `key`, `[key=value]` for members whose value matches; string values
  compare ignoring case). Unquoted keys are lower-cased, so quote keys that
  contain capitals. It returns a list of matches, or `None` if the path or
  object is missing; malformed paths raise `JPathError`.
- `barscan.scanner`: `Scanner` keeps named variables (case-insensitive
  names) fed by regular expressions (first group), whole lines or JSON paths
  over files, wildcard globs or command output, and `SET` variables computed
  by an `evaluate` callback given to the constructor. Values come back
  through `get_value("$name")` (the string) or `get_value("name.val")`, and
  `.pval`, `.count`, `.time`, `.age` (numbers). `Multi` chooses how several
  matches in one scan combine: `SUM`, `PRODUCT`, `LASTW`, `FIRST` or `LAST`.
- `barscan.flowgrid`: `FlowGrid` and `FlowItem` place active items into a
  fixed number of rows or columns, sort them with `FlowItem.compare`, and
  reorder them after a drop (`FlowItem.dnd_dest`, `FlowGrid.children_order`).
  `update()` returns a list of `Placement(item, column, row)`, with `item`
  `None` for empty filler cells.
- `barscan.mpd`: `MpdSession` tells what to send next: queued commands
  first, otherwise alternating `status`/`currentsong` and
  `idle player options`; `queue_command` returns the `noidle` text to send.
  `mpd_address` picks the runtime socket, `/run/mpd/socket`, or
  `MPD_HOST:MPD_PORT` (default `localhost:6600`).
- `barscan.signals`: `RealtimeSignals` counts real-time signals in its
  handler and, on `dispatch()`, calls the `emit` callback with a
  `sigrtmin+N` trigger for each one.
- `barscan.handlers`: `HandlerRegistry` holds `ExpressionHandler` and
  `ActionHandler` entries registered by name, ignores duplicates, and runs
  invalidators, actions and expression functions by name.

## Examples

```python
from barscan.jpath import jpath_parse

doc = {"cpus": [{"name": "cpu0", "load": 3}, {"name": "cpu1", "load": 7}]}
jpath_parse(".cpus.[name=cpu1].load", doc)   # [7]
```

```python
from barscan.scanner import Scanner, Source, VarType, Multi

scanner = Scanner()
meminfo = scanner.file_new(Source.FILE, "/proc/meminfo", None, 0)
scanner.var_new("memfree", meminfo, r"^MemFree:\s*(\d+)", VarType.REGEX, Multi.FIRST)
scanner.get_value("memfree.val", True)   # a float
scanner.get_value("$memfree", False)     # the matched text
```

## What it does not do

This is a library, not a bar. It has no command to run, draws no windows or
widgets, and reads no bar configuration file. `MpdSession` only decides what
text to send; opening and reading the MPD connection is up to the caller.
`HandlerRegistry` holds handlers passed to it and does not load extension
modules from disk. Nothing here talks to a compositor or a tray.

## Tests

```
pip install -e .[test]
pytest
```