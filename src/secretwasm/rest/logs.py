"""Helpers for reading transaction logs."""

from __future__ import annotations

import json
from typing import Any, List, Sequence

from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from secretwasm.errors import InvalidResponseError
from secretwasm.rest.types import Attribute, Log

__all__ = ["parse_logs", "parse_raw_log", "find_attribute"]

_LOGS_ADAPTER = TypeAdapter(List[Log])


def parse_logs(data: Any) -> List[Log]:
    """Validate a JSON logs array into Log models."""
    try:
        return _LOGS_ADAPTER.validate_python(data or [])
    except PydanticValidationError as e:
        raise InvalidResponseError(f"Malformed logs: {e.error_count()} errors") from e


def parse_raw_log(raw_log: str) -> List[Log]:
    """
    Parse a successful tx's ``raw_log`` into logs.

    A failed tx's raw log is plain text, not JSON; that raises
    InvalidResponseError.
    """
    try:
        data = json.loads(raw_log)
    except json.JSONDecodeError as e:
        raise InvalidResponseError("raw_log is not a JSON logs array", payload=raw_log) from e
    return parse_logs(data)


def find_attribute(logs: Sequence[Log], event_type: str, key: str) -> Attribute:
    """
    First attribute ``key`` of the first ``event_type`` event across logs.

    Raises:
        InvalidResponseError: If no such attribute exists.
    """
    for log in logs:
        for event in log.events:
            if event.type != event_type:
                continue
            for attribute in event.attributes:
                if attribute.key == key:
                    return attribute
    raise InvalidResponseError(
        f"Could not find attribute '{key}' in events of type '{event_type}'"
    )
