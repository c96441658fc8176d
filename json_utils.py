"""
JSON helpers backed by orjson
=============================

Version records and edit outcomes leave the engine as JSON strings. orjson
returns bytes, so these wrappers decode to ``str`` and keep the familiar
``json.dumps``/``json.loads`` call shape used across the code base.
"""

from typing import Any, Callable, Optional

import orjson


def dumps(obj: Any, indent: Optional[int] = None, default: Optional[Callable] = None) -> str:
    """
    Serialize obj to a JSON string.

    Args:
        obj: Object to serialize
        indent: Any non-None value pretty prints with two spaces
        default: Callable for objects orjson cannot serialize (e.g. default=str)

    Returns:
        JSON string
    """
    option = orjson.OPT_SERIALIZE_UUID | orjson.OPT_NON_STR_KEYS
    if indent is not None:
        option |= orjson.OPT_INDENT_2
    return orjson.dumps(obj, default=default, option=option).decode("utf-8")


def loads(s: Any) -> Any:
    """Deserialize a JSON string or bytes."""
    return orjson.loads(s)


JSONDecodeError = orjson.JSONDecodeError
