"""Naming helpers for child resources."""

from __future__ import annotations

import hashlib

_LONGEST = 63
_MD5_LEN = 32
_HEAD = _LONGEST - _MD5_LEN


def child_name(parent: str, suffix: str) -> str:
    """Join parent and suffix, hashing the parent when the result would exceed 63 characters."""
    if len(parent) <= _LONGEST - len(suffix):
        return parent + suffix
    if _HEAD - len(suffix) <= 0:
        digest = hashlib.md5(
            (parent + suffix).encode(), usedforsecurity=False
        ).hexdigest()
        return parent[:_HEAD] + digest
    digest = hashlib.md5(parent.encode(), usedforsecurity=False).hexdigest()
    return parent[: _HEAD - len(suffix)] + digest + suffix


def endpoint_probe_ingress(ing) -> str:
    """Return the name of the child ingress used to probe endpoints."""
    return child_name(ing.metadata.name + "--", "ep")