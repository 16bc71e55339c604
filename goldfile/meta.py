"""Turn the values held in a data structure into template references."""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from types import SimpleNamespace
from typing import Any, TypeVar

from .template import _format_value

_Data = TypeVar("_Data", str, bytes)


def join_path(path: str, key: Any) -> str:
    """Append ``key`` to a template field path."""
    if path == ".":
        return f"{path}{_format_value(key)}"
    return f"{path}.{_format_value(key)}"


def meta(data: Any) -> dict[str, str]:
    """Map every scalar value in ``data`` to the template path that reaches it.

    Mappings, dataclasses and namespaces are walked by key or field name,
    lists and tuples by position.  ``None`` values have no printable form and
    are left out.
    """
    result: dict[str, str] = {}

    def visit(value: Any, path: str) -> None:
        if value is None:
            return
        if isinstance(value, Mapping):
            for key, item in value.items():
                visit(item, join_path(path, key))
        elif isinstance(value, (list, tuple)):
            for position, item in enumerate(value):
                visit(item, f"index ({path}) {position}")
        elif dataclasses.is_dataclass(value) and not isinstance(value, type):
            for field in dataclasses.fields(value):
                visit(getattr(value, field.name), join_path(path, field.name))
        elif isinstance(value, SimpleNamespace):
            for key, item in vars(value).items():
                visit(item, join_path(path, key))
        else:
            result[_format_value(value)] = path

    visit(data, ".")
    return result


def templatize(data: Any, actual_data: _Data) -> _Data:
    """Replace every value of ``data`` found in ``actual_data`` with its template reference.

    Values are replaced in reverse sorted order so that longer values sharing
    a prefix with shorter ones are replaced first.
    """
    mapping = meta(data)
    for value in sorted(mapping, reverse=True):
        reference = "{{" + mapping[value] + "}}"
        if isinstance(actual_data, bytes):
            actual_data = actual_data.replace(value.encode(), reference.encode())
        else:
            actual_data = actual_data.replace(value, reference)
    return actual_data