"""
Firestore query helpers.

NOTE: For firebase_admin SDK, we use positional arguments which still work.
The deprecation warning is just a warning - the functionality is still supported.
"""

from typing import Any, Dict, Tuple

from google.cloud.firestore_v1.field_path import FieldPath


def where_filter(query, field_path: str, op_string: str, value):
    """
    Helper function for Firestore equality/range filters.

    Usage:
        query = where_filter(collection, "state", "==", "MH")
        query = where_filter(query, "status", "==", "working")
    """
    return query.where(field_path, op_string, value)


def field_path(*segments: str) -> str:
    """
    Build an update()-ready field path from raw segments.

    Segments that are not simple identifiers (user IDs with dots, dashes,
    etc.) are backtick-quoted so they stay a single map key:
        field_path("voters", "alice.smith") -> "voters.`alice.smith`"
    """
    return FieldPath(*segments).to_api_repr()


def split_field_path(path: str) -> Tuple[str, ...]:
    """Inverse of field_path(): "voters.`a.b`" -> ("voters", "a.b")."""
    return tuple(FieldPath.from_api_repr(path).parts)


def get_field(data: Dict[str, Any], path: str, default=None):
    """
    Resolve a field path (e.g. "voters.uid123") against a document dict.
    """
    current: Any = data
    for part in split_field_path(path):
        if not isinstance(current, dict) or part not in current:
            return default
        current = current[part]
    return current


def has_field(data: Dict[str, Any], path: str) -> bool:
    sentinel = object()
    return get_field(data, path, sentinel) is not sentinel


def set_field(data: Dict[str, Any], path: str, value) -> None:
    """Apply a field-path write the way Firestore's update() interprets it."""
    parts = split_field_path(path)
    current = data
    for part in parts[:-1]:
        nested = current.get(part)
        if not isinstance(nested, dict):
            nested = {}
            current[part] = nested
        current = nested
    current[parts[-1]] = value
