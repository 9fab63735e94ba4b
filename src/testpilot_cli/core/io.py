"""Safe file operations for configuration and reports.

Every helper raises :class:`FileOperationError` instead of leaking ``OSError``
or parser exceptions, so callers handle a single error type.
"""

import contextlib
import json
import tempfile
from pathlib import Path
from typing import Any

import yaml

from testpilot.common.errors import FileOperationError


def _read_text(path: Path, kind: str) -> str:
    if not path.exists():
        msg = f"{kind} file does not exist: {path}"
        raise FileOperationError(msg)
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        msg = f"Cannot read {kind} file {path}: {e}"
        raise FileOperationError(msg) from e


def safe_read_yaml(path: Path) -> dict[str, Any]:
    """Read a YAML mapping.

    Parameters
    ----------
    path : Path
        YAML file

    Returns
    -------
    dict[str, Any]
        Parsed mapping, empty for an empty document

    Raises
    ------
    FileOperationError
        If the file is missing, unreadable, invalid or not a mapping
    """
    text = _read_text(path, "YAML")
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        msg = f"Invalid YAML in {path}: {e}"
        raise FileOperationError(msg) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"Expected a mapping at the top of {path}"
        raise FileOperationError(msg)
    return data


def safe_write_yaml(path: Path, data: dict[str, Any]) -> None:
    """Write ``data`` as block-style YAML, keeping key order."""
    try:
        text = yaml.safe_dump(data, default_flow_style=False, sort_keys=False)
    except yaml.YAMLError as e:
        msg = f"Cannot serialize YAML for {path}: {e}"
        raise FileOperationError(msg) from e
    atomic_write(path, text)


def safe_read_json(path: Path) -> dict[str, Any]:
    """Read a JSON object; any other top-level value reads as empty.

    Raises
    ------
    FileOperationError
        If the file is missing, unreadable or malformed
    """
    text = _read_text(path, "JSON")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        msg = f"Invalid JSON in {path}: {e}"
        raise FileOperationError(msg) from e
    return data if isinstance(data, dict) else {}


def safe_write_json(path: Path, data: dict[str, Any]) -> None:
    """Write ``data`` as indented JSON with sorted keys."""
    atomic_write(path, json.dumps(data, indent=2, sort_keys=True))


def atomic_write(path: Path, content: str) -> None:
    """Write ``content`` to a sibling temp file, then move it over ``path``.

    Readers never see a partially written file. The temp file is removed when
    the write or the move fails.

    Raises
    ------
    FileOperationError
        If the file cannot be written
    """
    ensure_dir(path.parent)
    temp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            prefix=f".{path.name}.",
            dir=path.parent,
            delete=False,
        ) as handle:
            temp_path = Path(handle.name)
            handle.write(content)
        temp_path.replace(path)
    except OSError as e:
        if temp_path is not None:
            with contextlib.suppress(OSError):
                temp_path.unlink(missing_ok=True)
        msg = f"Cannot write file {path}: {e}"
        raise FileOperationError(msg) from e


def ensure_dir(path: Path) -> Path:
    """Create ``path`` and its parents if needed.

    Raises
    ------
    FileOperationError
        If the directory cannot be created
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        msg = f"Cannot create directory {path}: {e}"
        raise FileOperationError(msg) from e
    return path
