"""Conversion of result records to JSON-compatible structures."""

import dataclasses
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any


def to_dict(value: Any) -> Any:
    """Recursively convert records into plain JSON-compatible values.

    Dataclasses become dicts of their fields (properties are not included).
    Enums become their values and datetimes become ISO strings. Tuples and
    lists both become lists.

    Parameters
    ----------
    value : Any
        Value to convert

    Returns
    -------
    Any
        JSON-compatible value
    """
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            f.name: to_dict(getattr(value, f.name)) for f in dataclasses.fields(value)
        }
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, dict):
        return {str(to_dict(k)): to_dict(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_dict(v) for v in value]
    return value
