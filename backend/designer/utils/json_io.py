"""
JSON serialization helpers for documents stored in the working copy.
"""

import json
from typing import Any


def drop_nulls(value: Any) -> Any:
    """Recursively remove None values from dicts."""
    if isinstance(value, dict):
        return {k: drop_nulls(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [drop_nulls(v) for v in value]
    return value


def dump_json(value: Any, ignore_nulls: bool = False) -> str:
    """Serialize to 2-space indented UTF-8 friendly JSON."""
    if ignore_nulls:
        value = drop_nulls(value)
    return json.dumps(value, indent=2, ensure_ascii=False)
