"""I/O utilities for JSON and JSONL files.

orjson-backed JSON I/O, JSONL support, and dataclass-safe serialization for
the catalog and seed files.
"""
from __future__ import annotations

import dataclasses
from pathlib import Path
from typing import Any, cast

import orjson

from lawindex.legal_types import DocumentStub


def load_json(path: Path) -> Any:
    """Load JSON from a file."""
    return orjson.loads(path.read_bytes())


def save_json(obj: Any, path: Path, *, pretty: bool = True) -> None:
    """Save an object as JSON with sorted keys."""
    path.parent.mkdir(parents=True, exist_ok=True)
    opts = orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS if pretty else orjson.OPT_SORT_KEYS
    path.write_bytes(orjson.dumps(to_jsonable(obj), option=opts))


def load_jsonl(path: Path) -> list[dict[str, Any]]:
    """Load a JSON Lines file (one JSON object per line). Blank lines skipped."""
    records: list[dict[str, Any]] = []
    for line in path.read_bytes().split(b"\n"):
        line = line.strip()
        if line:
            records.append(orjson.loads(line))
    return records


def save_jsonl(records: list[dict[str, Any]], path: Path) -> None:
    """Save a list of dicts as a JSON Lines file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = [orjson.dumps(to_jsonable(r), option=orjson.OPT_SORT_KEYS) for r in records]
    path.write_bytes(b"\n".join(lines) + b"\n" if lines else b"")


def to_jsonable(obj: Any) -> Any:
    """Recursively convert dataclasses and tuples to JSON-native values."""
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {
            f.name: to_jsonable(getattr(obj, f.name))
            for f in dataclasses.fields(obj)
        }
    if isinstance(obj, dict):
        obj_dict = cast(dict[Any, Any], obj)
        return {str(k): to_jsonable(v) for k, v in obj_dict.items()}
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(v) for v in cast(list[Any], obj)]
    return obj


def stubs_to_json(stubs: list[DocumentStub]) -> list[dict[str, Any]]:
    """Catalog file rows, one dict per stub."""
    return [to_jsonable(s) for s in stubs]


def stubs_from_json(rows: list[dict[str, Any]]) -> list[DocumentStub]:
    """Inverse of ``stubs_to_json``; unknown keys are ignored."""
    return [
        DocumentStub(
            collection=str(row["collection"]),
            year=int(row["year"]),
            number=int(row["number"]),
            title=str(row["title"]),
            url=str(row["url"]),
            updated=str(row.get("updated") or ""),
        )
        for row in rows
    ]
