"""Helpers for comparing release versions."""

from __future__ import annotations

import re


__all__ = ["compare_versions"]

_INTEGER_FIELD = re.compile(r"[+-]?[0-9]+")


def compare_versions(left: str, right: str) -> int:
    """Order two dotted version strings field by field.

    Returns ``-1`` when ``left`` is older than ``right``, ``1`` when it is newer
    and ``0`` when both are equivalent.  Each dot-separated field is compared as
    an integer; a field that is not a plain integer counts as zero, so
    ``"1.2.3-beta"`` orders like ``"1.2.0"``.  The shorter version is padded with
    zero fields, so ``"1.2"`` and ``"1.2.0"`` compare equal.
    """

    left_fields = _fields(left)
    right_fields = _fields(right)
    length = max(len(left_fields), len(right_fields))
    for index in range(length):
        left_field = left_fields[index] if index < len(left_fields) else 0
        right_field = right_fields[index] if index < len(right_fields) else 0
        if left_field != right_field:
            return -1 if left_field < right_field else 1
    return 0


def _fields(version: str) -> list[int]:
    return [
        int(raw) if _INTEGER_FIELD.fullmatch(raw) else 0
        for raw in version.strip().split(".")
    ]
