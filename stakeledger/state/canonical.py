"""
Hashing inputs for permit digests and ledger roots.

Both are `sha256(domain_tag || canonical_json(document))`, where the document
holds only dicts, lists, strs, ints, bools and None. Amounts are ints of any
size, so floats are refused outright rather than rounded.
"""

from __future__ import annotations

import hashlib
import json
import re
from typing import Any, Optional


DOMAIN_PREFIX = "stakeledger"

_ADDRESS_RE = re.compile(r"(?:0[xX])?([0-9a-fA-F]{40})")


def _check_document(value: Any, path: str = "$") -> None:
    if isinstance(value, float):
        raise TypeError(f"{path}: float in canonical document")
    if isinstance(value, str):
        # Lone surrogates have no UTF-8 encoding.
        if any(0xD800 <= ord(ch) <= 0xDFFF for ch in value):
            raise TypeError(f"{path}: surrogate code point in canonical document")
    elif isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"{path}: non-str key {key!r}")
            _check_document(key, path)
            _check_document(item, f"{path}.{key}")
    elif isinstance(value, (list, tuple)):
        for i, item in enumerate(value):
            _check_document(item, f"{path}[{i}]")


def canonical_json_bytes(value: Any) -> bytes:
    """UTF-8 JSON with sorted keys and no whitespace."""
    _check_document(value)
    return json.dumps(
        value, sort_keys=True, separators=(",", ":"), ensure_ascii=False, allow_nan=False
    ).encode("utf-8")


def domain_sep_bytes(label: str, version: int = 1) -> bytes:
    """`stakeledger:<label>:v<version>` plus a NUL terminator."""
    if not isinstance(label, str) or not label or not label.isascii() or "\x00" in label:
        raise ValueError(f"domain label must be non-empty ASCII without NUL: {label!r}")
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError(f"domain version must be a positive int: {version!r}")
    return f"{DOMAIN_PREFIX}:{label}:v{version}".encode("ascii") + b"\x00"


def sha256_hex(data: bytes) -> str:
    return "0x" + hashlib.sha256(data).hexdigest()


def canonical_address(value: Any) -> Optional[str]:
    """Lowercase `0x` form of a 20-byte hex address, or None if `value` is not one."""
    if not isinstance(value, str):
        return None
    match = _ADDRESS_RE.fullmatch(value)
    if match is None:
        return None
    return "0x" + match.group(1).lower()
