"""URL-encoded form serialization used for query strings and form bodies."""

from collections.abc import Mapping
from typing import Any
from urllib.parse import parse_qsl, quote


def _escape(value: str, encoding: str) -> str:
    return quote(value, safe="", encoding=encoding)


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def string_from_object(obj: Mapping[str, Any], encoding: str = "utf-8") -> str:
    """Serialize a mapping into ``key=value`` pairs joined by ``&``.

    Keys and values are percent-encoded with no safe characters, so a space
    becomes ``%20``. List and tuple values repeat the key once per item.

    Args:
        obj: Mapping of parameter names to values.
        encoding: Character encoding applied before percent-encoding.

    Returns:
        The encoded string (empty for an empty mapping).

    Raises:
        TypeError: If ``obj`` is not a mapping.
    """
    if not isinstance(obj, Mapping):
        raise TypeError(f"expected a mapping, got {type(obj).__name__}")

    pairs: list[str] = []
    for key, value in obj.items():
        escaped_key = _escape(str(key), encoding)
        values = value if isinstance(value, (list, tuple)) else [value]
        for item in values:
            pairs.append(f"{escaped_key}={_escape(_stringify(item), encoding)}")
    return "&".join(pairs)


def object_from_string(text: str, encoding: str = "utf-8") -> dict[str, str]:
    """Parse a URL-encoded string into a flat dictionary.

    Blank values are kept. When a key repeats, the last value wins.
    """
    return dict(parse_qsl(text, keep_blank_values=True, encoding=encoding, errors="strict"))
