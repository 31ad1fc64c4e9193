"""Metadata label table shared by the parser, serializer and checklist importer.

Each entry pairs a document label (``- **Label**: value``) with the ``Task``
attribute it fills, a parse function and a format function. Parse functions
raise ``ValueError`` on bad input; format functions return ``None`` when the
line should be omitted. Adding a field means adding a row here.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from specdriven.tasks.model import TaskStatus, TaskType


@dataclass(frozen=True)
class FieldSpec:
    label: str
    attr: str
    parse: Callable[[str], Any]
    format: Callable[[Any], str | None]


def split_list(value: str) -> list[str]:
    """Split a comma-separated value, dropping blanks."""
    return [item.strip() for item in value.split(",") if item.strip()]


def _join_list(values: list[str]) -> str | None:
    return ", ".join(values) if values else None


def _parse_status(value: str) -> TaskStatus:
    status = TaskStatus.parse(value)
    if status is None:
        raise ValueError(f"unknown status {value.strip()!r}")
    return status


def _parse_type(value: str) -> TaskType:
    task_type = TaskType.parse(value)
    if task_type is None:
        raise ValueError(f"unknown type {value.strip()!r}")
    return task_type


def _parse_priority(value: str) -> int:
    try:
        return int(value.strip())
    except ValueError:
        raise ValueError(f"priority is not an integer: {value.strip()!r}") from None


def _parse_estimate(value: str) -> str | None:
    return value.strip() or None


def _parse_timestamp(value: str) -> datetime:
    text = value.strip()
    # fromisoformat only accepts a "Z" suffix from Python 3.11 on.
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        raise ValueError(f"bad timestamp {value.strip()!r}") from None


FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("Status", "status", _parse_status, lambda v: v.value),
    FieldSpec("Type", "type", _parse_type, lambda v: v.value),
    FieldSpec("Priority", "priority", _parse_priority, str),
    FieldSpec("Estimate", "estimate", _parse_estimate, lambda v: v or None),
    FieldSpec("Implements", "implements", split_list, _join_list),
    FieldSpec("Depends On", "depends_on", split_list, _join_list),
    FieldSpec("Files", "target_files", split_list, _join_list),
    FieldSpec("Completed", "completed_at", _parse_timestamp, lambda v: v.isoformat() if v else None),
)

FIELDS_BY_LABEL: dict[str, FieldSpec] = {f.label.lower(): f for f in FIELDS}


def lookup(label: str) -> FieldSpec | None:
    """Find the field for *label*, ignoring case and surrounding whitespace."""
    return FIELDS_BY_LABEL.get(" ".join(label.split()).lower())
