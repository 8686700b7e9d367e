"""Safe YAML file operations for the cencli data directory."""

import contextlib
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml


class YamlOperationError(Exception):
    """Raised when YAML file operations fail."""


def safe_read_yaml(path: Path) -> dict[str, Any]:
    """Safely read YAML file with error handling.

    Parameters
    ----------
    path : Path
        Path to YAML file

    Returns
    -------
    dict[str, Any]
        Parsed YAML data; an empty file yields an empty dict

    Raises
    ------
    YamlOperationError
        If file cannot be read or parsed, or does not hold a mapping
    """
    try:
        if not path.exists():
            msg = f"YAML file does not exist: {path}"
            raise YamlOperationError(msg)

        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)

    except yaml.YAMLError as e:
        msg = f"Invalid YAML in {path}: {e}"
        raise YamlOperationError(msg) from e
    except OSError as e:
        msg = f"Cannot read YAML file {path}: {e}"
        raise YamlOperationError(msg) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"Expected a mapping at the top of {path}, got {type(data).__name__}"
        raise YamlOperationError(msg)
    return data


def safe_write_yaml(path: Path, data: dict[str, Any], mode: int | None = None) -> None:
    """Safely write YAML file with atomic operation.

    Parameters
    ----------
    path : Path
        Path to YAML file
    data : dict[str, Any]
        Data to write
    mode : int | None
        File permissions to apply before the file is moved into place

    Raises
    ------
    YamlOperationError
        If file cannot be written
    """
    temp_path = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)

        # Use atomic write to prevent corruption
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            suffix=".yaml",
            dir=path.parent,
            delete=False,
        ) as temp_file:
            temp_path = Path(temp_file.name)
            yaml.safe_dump(data, temp_file, default_flow_style=False, sort_keys=False)

        if mode is not None:
            os.chmod(temp_path, mode)

        # Atomic move
        temp_path.replace(path)

    except (OSError, yaml.YAMLError) as e:
        # Clean up temp file if it exists
        if temp_path is not None:
            with contextlib.suppress(OSError):
                temp_path.unlink(missing_ok=True)
        msg = f"Cannot write YAML file {path}: {e}"
        raise YamlOperationError(msg) from e


def dump_yaml(data: Any) -> str:
    """Serialize data as block-style YAML, preserving key order."""
    return yaml.safe_dump(
        data,
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
    )
