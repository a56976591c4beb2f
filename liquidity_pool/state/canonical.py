"""
Canonical byte encodings for commitments and signatures.

Everything hashed by the pool layer (snapshot commitments, derived contract
addresses, signed invocation digests) goes through `canonical_json_bytes`
behind a `domain_sep_bytes` prefix, so two encodings of the same value can
never hash differently.
"""

from __future__ import annotations

import hashlib
import json
import string
from typing import Any

DOMAIN_PREFIX = b"lpool:"


def _check_encodable(value: Any, path: str = "$") -> None:
    if isinstance(value, float):
        raise TypeError(f"float at {path} has no canonical encoding")
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"non-str key at {path}: {key!r}")
            _check_encodable(item, f"{path}.{key}")
    elif isinstance(value, (list, tuple)):
        for i, item in enumerate(value):
            _check_encodable(item, f"{path}[{i}]")


def canonical_json_bytes(value: Any) -> bytes:
    """UTF-8 JSON with sorted keys, no whitespace and no floats."""
    _check_encodable(value)
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False, allow_nan=False).encode(
        "utf-8"
    )


def sha256_hex(data: bytes) -> str:
    return "0x" + hashlib.sha256(data).hexdigest()


def domain_sep_bytes(label: str, version: int = 1) -> bytes:
    """
    Prefix `lpool:<label>:v<version>\\x00` for hashing under a named domain.

    Raises:
        TypeError: If label is empty or not a str
        ValueError: If label is not printable ASCII or version is not positive
    """
    if not isinstance(label, str) or not label:
        raise TypeError("label must be a non-empty str")
    if not label.isascii() or "\x00" in label:
        raise ValueError(f"label must be ASCII without NUL: {label!r}")
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError(f"version must be a positive int: {version!r}")
    return DOMAIN_PREFIX + f"{label}:v{version}".encode("ascii") + b"\x00"


def hex_to_bytes_fixed(hex_str: str, *, nbytes: int, name: str) -> bytes:
    """Decode `0x` + exactly `2*nbytes` hex digits."""
    if not isinstance(hex_str, str):
        raise TypeError(f"{name} must be a str")
    body = hex_str[2:] if hex_str.startswith("0x") else None
    if body is None or len(body) != 2 * nbytes or not all(c in string.hexdigits for c in body):
        raise ValueError(f"{name} must be 0x followed by {2 * nbytes} hex digits")
    return bytes.fromhex(body)


def derive_address(label: str, *parts: str) -> str:
    """address = sha256(domain_sep(label) || canonical_json(parts))"""
    return sha256_hex(domain_sep_bytes(label) + canonical_json_bytes(list(parts)))
