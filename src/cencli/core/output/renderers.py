"""Rendering of command data in the data-family formats.

``print_by_format`` writes the whole result at once in json, yaml, ndjson or
tree form. ``write_ndjson_item`` writes a single record and is what the
streaming writer thread uses.
"""

from __future__ import annotations

import dataclasses
import datetime
import enum
import json
import sys
from collections.abc import Mapping
from typing import IO, Any

from rich.console import Console
from rich.json import JSON
from rich.markup import escape
from rich.tree import Tree

from cencli.core.errors import CencliError
from cencli.core.output.formats import OutputFormat, OutputType
from cencli.core.yaml import dump_yaml


def to_serializable(data: Any) -> Any:
    """Convert results into plain JSON-compatible structures.

    Dataclasses and objects exposing ``to_dict`` become mappings, dates become
    ISO 8601 strings, enums their values.
    """
    if data is None or isinstance(data, (str, int, float, bool)):
        return data
    if isinstance(data, enum.Enum):
        return data.value
    if isinstance(data, (datetime.datetime, datetime.date)):
        return data.isoformat()
    if hasattr(data, "to_dict"):
        return to_serializable(data.to_dict())
    if dataclasses.is_dataclass(data) and not isinstance(data, type):
        return {
            field.name: to_serializable(getattr(data, field.name))
            for field in dataclasses.fields(data)
        }
    if isinstance(data, Mapping):
        return {str(key): to_serializable(value) for key, value in data.items()}
    if isinstance(data, (list, tuple, set, frozenset)):
        return [to_serializable(item) for item in data]
    return str(data)


def _console(stream: IO[str], colored: bool) -> Console:
    return Console(
        file=stream,
        force_terminal=colored,
        no_color=not colored,
        highlight=False,
        soft_wrap=True,
    )


def render_json(data: Any, indent: int | None = 2) -> str:
    """Serialize data as JSON text."""
    separators = (",", ":") if indent is None else None
    return json.dumps(
        to_serializable(data),
        indent=indent,
        ensure_ascii=False,
        separators=separators,
    )


def print_json(data: Any, colored: bool = False, stream: IO[str] | None = None) -> None:
    """Print indented JSON, syntax highlighted when colored."""
    sink = stream if stream is not None else sys.stdout
    text = render_json(data)
    if colored:
        _console(sink, colored).print(JSON(text, indent=2))
    else:
        sink.write(text + "\n")
    sink.flush()


def print_yaml(data: Any, stream: IO[str] | None = None) -> None:
    """Print block-style YAML."""
    sink = stream if stream is not None else sys.stdout
    sink.write(dump_yaml(to_serializable(data)))
    sink.flush()


def write_ndjson_item(stream: IO[str], item: Any, colored: bool = False) -> None:
    """Write one record as a compact JSON line and flush immediately."""
    line = render_json(item, indent=None)
    if colored:
        _console(stream, colored).print(JSON(line, indent=None))
    else:
        stream.write(line + "\n")
    stream.flush()


def print_ndjson(data: Any, colored: bool = False, stream: IO[str] | None = None) -> None:
    """Print one JSON line per list element; other values form one line."""
    sink = stream if stream is not None else sys.stdout
    items = data if isinstance(data, (list, tuple)) else [data]
    for item in items:
        write_ndjson_item(sink, item, colored)


def build_tree(data: Any, label: str = "result") -> Tree:
    """Build a ``rich`` tree from nested mappings and lists."""
    tree = Tree(f"[bold]{escape(label)}[/bold]")
    _add_branch(tree, to_serializable(data))
    return tree


def _add_branch(node: Tree, value: Any) -> None:
    if isinstance(value, dict):
        for key, child in value.items():
            _add_child(node, str(key), child)
    elif isinstance(value, list):
        for index, child in enumerate(value):
            _add_child(node, f"[{index}]", child)
    else:
        node.add(escape(_scalar(value)))


def _add_child(node: Tree, key: str, value: Any) -> None:
    if isinstance(value, (dict, list)):
        if not value:
            node.add(f"[cyan]{escape(key)}[/cyan]: {'{}' if isinstance(value, dict) else '[]'}")
            return
        branch = node.add(f"[cyan]{escape(key)}[/cyan]")
        _add_branch(branch, value)
    else:
        node.add(f"[cyan]{escape(key)}[/cyan]: {escape(_scalar(value))}")


def _scalar(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def print_tree(data: Any, colored: bool = False, stream: IO[str] | None = None) -> None:
    """Print data as an indented tree."""
    sink = stream if stream is not None else sys.stdout
    _console(sink, colored).print(build_tree(data))
    sink.flush()


def print_by_format(
    data: Any,
    output_format: OutputFormat | str,
    colored: bool = False,
    stream: IO[str] | None = None,
) -> None:
    """Render data in a data-family format.

    Raises
    ------
    CencliError
        For ``short`` and ``template``, which commands render themselves
    """
    output_format = OutputFormat(output_format)
    if output_format.output_type is not OutputType.DATA:
        msg = f"{output_format.value} output must be rendered by the command"
        raise CencliError(msg)

    if output_format is OutputFormat.JSON:
        print_json(data, colored, stream)
    elif output_format is OutputFormat.YAML:
        print_yaml(data, stream)
    elif output_format is OutputFormat.NDJSON:
        print_ndjson(data, colored, stream)
    else:
        print_tree(data, colored, stream)
