"""
File and model name helpers for the App/models directory.
"""

import re
from pathlib import PurePosixPath
from urllib.parse import unquote

MODELS_DIRECTORY = "App/models"
JSON_SCHEMA_SUFFIX = ".schema.json"
XSD_SUFFIX = ".xsd"
METADATA_SUFFIX = ".metadata.json"
CSHARP_SUFFIX = ".cs"

_INVALID_FILE_NAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')
_SEPARATORS = re.compile(r"[/\\\x00]")


def as_file_name(name: str | None) -> str:
    """
    Validate that a value can be used as a file name.

    Raises:
        ValueError: If the name is empty or contains invalid characters
    """
    if name is None or not name.strip():
        raise ValueError("File name cannot be empty")

    name = name.strip()
    if name in (".", "..") or _INVALID_FILE_NAME_CHARS.search(name):
        raise ValueError(f"'{name}' is not a valid file name")
    return name


def model_name_from_path(model_path: str) -> str:
    """
    Extract the model name from a model path.

    Accepts "model.schema.json", "App/models/model.schema.json",
    "/App/models/model.schema.json" and URL-encoded variants.
    """
    decoded = unquote(model_path or "").strip()
    file_name = PurePosixPath(decoded.replace("\\", "/")).name
    for suffix in (JSON_SCHEMA_SUFFIX, XSD_SUFFIX):
        if file_name.lower().endswith(suffix):
            file_name = file_name[: -len(suffix)]
            break
    return as_file_name(file_name)


def model_file_path(model_name: str, suffix: str) -> str:
    """Relative repository path for a model artifact."""
    return f"{MODELS_DIRECTORY}/{model_name}{suffix}"


def as_path_segment(value: str | None, kind: str = "name") -> str:
    """
    Validate that a value is a single plain directory name.

    Used for the developer, org and app parts of working copy paths.

    Raises:
        ValueError: If the value is empty, "." or "..", or contains a separator
    """
    if not value or value in (".", "..") or _SEPARATORS.search(value):
        raise ValueError(f"'{value}' is not a valid {kind}")
    return value
