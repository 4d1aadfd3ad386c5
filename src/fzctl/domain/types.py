"""Identifier classification enums."""

from __future__ import annotations

from enum import StrEnum


class ZettelType(StrEnum):
    """Kind of a Luhmann identifier.

    A *sequence* identifier continues a line of thought (``21.1``);
    a *branch* identifier digresses from one (``21a``).
    """

    SEQUENCE = "sequence"
    BRANCH = "branch"
