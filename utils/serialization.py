"""
Canonical Serialization Helpers
===============================
Public objects serialize to plain dictionaries. The canonical form is compact
JSON with sorted keys, encoded as UTF-8; big integers are uppercase base-16
without leading zeros. Re-encoding a decoded canonical byte string yields the
identical bytes.
"""

import json
import re
from typing import Any, Dict, List, Type, TypeVar

from errors import SerializationError

T = TypeVar('T', bound='CanonicalSerializable')

_HEX_RE = re.compile(r'^[0-9A-F]+$')


def int_to_hex(value: int) -> str:
    """Encode a non-negative integer as uppercase hex without leading zeros"""
    if value < 0:
        raise SerializationError(f"Cannot encode negative integer {value}")
    return format(value, 'X')


def hex_to_int(text: Any) -> int:
    """Decode uppercase hex produced by int_to_hex"""
    if not isinstance(text, str) or not _HEX_RE.match(text):
        raise SerializationError(f"Not a canonical base-16 integer: {text!r}")
    return int(text, 16)


def to_canonical_bytes(data: Dict[str, Any]) -> bytes:
    return json.dumps(data, sort_keys=True, separators=(',', ':'),
                      ensure_ascii=False).encode('utf-8')


def to_pretty_json(data: Dict[str, Any]) -> str:
    return json.dumps(data, sort_keys=True, indent=2, ensure_ascii=False)


def from_json_bytes(data: bytes) -> Dict[str, Any]:
    """Parse JSON bytes into a dictionary, raising SerializationError on failure"""
    try:
        parsed = json.loads(data.decode('utf-8')
                            if isinstance(data, (bytes, bytearray)) else data)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise SerializationError(f"Malformed canonical bytes: {e}") from e
    if not isinstance(parsed, dict):
        raise SerializationError(
            f"Expected a JSON object, got {type(parsed).__name__}")
    return parsed


def require(data: Dict[str, Any], key: str, expected_type: type = None) -> Any:
    """Fetch a required key, checking its type"""
    if not isinstance(data, dict):
        raise SerializationError(
            f"Expected an object while reading '{key}', got {type(data).__name__}")
    if key not in data:
        raise SerializationError(f"Missing required field '{key}'")
    value = data[key]
    if expected_type is not None:
        # bool is an int subclass; never accept it where an int is required
        if expected_type is int and isinstance(value, bool):
            raise SerializationError(f"Field '{key}' must be an integer")
        if not isinstance(value, expected_type):
            raise SerializationError(
                f"Field '{key}' must be of type {expected_type.__name__}, got {type(value).__name__}")
    return value


def require_list(data: Dict[str, Any], key: str) -> List[Any]:
    return require(data, key, list)


class CanonicalSerializable:
    """Mixin giving canonical and pretty encodings on top of to_dict/from_dict"""

    def to_dict(self) -> Dict[str, Any]:
        raise NotImplementedError

    @classmethod
    def from_dict(cls: Type[T], data: Dict[str, Any]) -> T:
        raise NotImplementedError

    def to_canonical_bytes(self) -> bytes:
        return to_canonical_bytes(self.to_dict())

    def to_pretty_json(self) -> str:
        return to_pretty_json(self.to_dict())

    @classmethod
    def from_canonical_bytes(cls: Type[T], data: bytes) -> T:
        parsed = from_json_bytes(data)
        try:
            return cls.from_dict(parsed)
        except SerializationError:
            raise
        except (KeyError, TypeError, ValueError) as e:
            raise SerializationError(
                f"Malformed {cls.__name__}: {e}") from e
