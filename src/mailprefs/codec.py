"""Serialization of preference values stored as a single string blob.

Blobs are YAML flow mappings, e.g. ``{INBOX: {b: 3, d: 1}}``. Decoding goes
through PyYAML's safe loader, so ``!!python/...`` tags never build objects,
and the result is further restricted to plain primitive data.
"""

import logging

import yaml

from .exceptions import PrefDecodeError

logger = logging.getLogger("mailprefs.codec")

PRIMITIVE_TYPES = (str, int, float, bool, type(None))


def _check_primitive(value, path: str = "") -> None:
    """Raise PrefDecodeError if value holds anything but dicts/lists/scalars."""
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, PRIMITIVE_TYPES):
                raise PrefDecodeError(f"Disallowed key type {type(key).__name__} at {path or '/'}")
            _check_primitive(item, f"{path}/{key}")
    elif isinstance(value, list):
        for i, item in enumerate(value):
            _check_primitive(item, f"{path}/{i}")
    elif not isinstance(value, PRIMITIVE_TYPES):
        raise PrefDecodeError(f"Disallowed type {type(value).__name__} at {path or '/'}")


def encode_mapping(mapping: dict) -> str:
    """Serialize a mapping to a one-line YAML blob (insertion order kept)."""
    return yaml.safe_dump(
        mapping,
        default_flow_style=True,
        sort_keys=False,
        width=float("inf"),
    ).strip()


def decode_mapping(blob: str) -> dict:
    """Decode a blob, raising PrefDecodeError unless it is a primitive mapping."""
    try:
        data = yaml.safe_load(blob)
    except yaml.YAMLError as e:
        raise PrefDecodeError(str(e)) from e
    if not isinstance(data, dict):
        raise PrefDecodeError(f"Expected a mapping, got {type(data).__name__}")
    _check_primitive(data)
    return data


def load_mapping(value) -> dict:
    """Decode a stored preference value, treating anything unusable as empty."""
    if not isinstance(value, str) or not value:
        return {}
    try:
        return decode_mapping(value)
    except PrefDecodeError as e:
        logger.debug("Ignoring undecodable preference blob: %s", e)
        return {}
