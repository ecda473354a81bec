"""Read per-term JSON source files.

Each file holds one record:
    {"term": "...", "definitions": [{"text": "...", "example": "..."}], "url": "..."}
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


class RecordError(ValueError):
    """A single source record is malformed and must be skipped."""


@dataclass(frozen=True)
class SourceDefinition:
    text: str
    example: Optional[str] = None


@dataclass
class SourceRecord:
    term: str
    url: Optional[str]
    definitions: list[SourceDefinition]
    source: str = ""


@dataclass
class ReadResult:
    files: int = 0
    records: list[SourceRecord] = field(default_factory=list)
    errors: list[dict] = field(default_factory=list)


def _parse_definition(item, index: int) -> SourceDefinition:
    if not isinstance(item, dict):
        raise RecordError(f"definitions[{index}] must be an object")
    text = item.get("text")
    if not isinstance(text, str) or not text.strip():
        raise RecordError(f"definitions[{index}].text must be a non-empty string")
    example = item.get("example")
    if example is not None and not isinstance(example, str):
        raise RecordError(f"definitions[{index}].example must be a string")
    return SourceDefinition(text=text, example=example or None)


def parse_record(data, source: str = "") -> SourceRecord:
    """Validate one decoded JSON document; raises RecordError when malformed."""
    if not isinstance(data, dict):
        raise RecordError("record must be a JSON object")
    term = data.get("term")
    if not isinstance(term, str) or not term.strip():
        raise RecordError("term must be a non-empty string")
    definitions = data.get("definitions", [])
    if not isinstance(definitions, list):
        raise RecordError("definitions must be a list")
    url = data.get("url")
    if url is not None and not isinstance(url, str):
        raise RecordError("url must be a string")
    return SourceRecord(
        term=term.strip(),
        url=url or None,
        definitions=[_parse_definition(item, idx) for idx, item in enumerate(definitions)],
        source=source,
    )


def load_record(path: Path) -> SourceRecord:
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise RecordError(f"cannot read JSON: {exc}") from exc
    return parse_record(data, source=path.name)


def list_source_files(directory: Path) -> list[Path]:
    return sorted(path for path in directory.iterdir() if path.is_file() and path.suffix == ".json")


def read_records(directory: Path) -> ReadResult:
    """Load every *.json file in directory (sorted by name), collecting per-file errors."""
    result = ReadResult()
    for path in list_source_files(directory):
        result.files += 1
        try:
            result.records.append(load_record(path))
        except RecordError as exc:
            result.errors.append({"source": path.name, "message": str(exc)})
    return result
