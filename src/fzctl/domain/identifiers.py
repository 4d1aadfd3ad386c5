"""Luhmann identifier grammar: parsing, formatting, ordering, and ancestry.

An identifier is a dotted sequence path of positive integers followed by an
optional run of lowercase letters (the branch suffix)::

    21        path (21,)      suffix ""   sequence, level 1
    21.1      path (21, 1)    suffix ""   sequence, level 2
    21.1b     path (21, 1)    suffix "b"  branch,   level 2

INVARIANT: ``format_identifier(parse(s)[0]) == s`` for every valid ``s``.
INVARIANT: a parent identifier is always structurally shorter than its child,
so parent inference alone can never produce a cycle.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from fzctl.domain.types import ZettelType

IDENTIFIER_PATTERN = re.compile(r"[0-9]+(?:\.[0-9]+)*(?:[a-z]+)?")
VALID_IDENTIFIER = re.compile(r"^[1-9][0-9]*(?:\.[1-9][0-9]*)*[a-z]*$")
_SUFFIX = re.compile(r"^[a-z]*$")


@dataclass(frozen=True)
class Identifier:
    """A parsed Luhmann identifier. Hashable value object."""

    path: tuple[int, ...]
    suffix: str = ""

    def __post_init__(self) -> None:
        if not self.path:
            msg = "Identifier path must have at least one segment"
            raise ValueError(msg)
        if any(segment < 1 for segment in self.path):
            msg = f"Identifier segments must be positive integers: {self.path}"
            raise ValueError(msg)
        if not _SUFFIX.match(self.suffix):
            msg = f"Branch suffix must be lowercase letters: {self.suffix!r}"
            raise ValueError(msg)

    @classmethod
    def from_string(cls, raw: str) -> Identifier:
        """Parse *raw* as exactly one identifier, raising ``ValueError`` otherwise."""
        text = raw.strip()
        if not VALID_IDENTIFIER.match(text):
            msg = f"Not a valid identifier: {raw!r}"
            raise ValueError(msg)
        return _from_match(text)

    @property
    def type(self) -> ZettelType:
        return ZettelType.BRANCH if self.suffix else ZettelType.SEQUENCE

    @property
    def level(self) -> int:
        return len(self.path)

    @property
    def is_branch(self) -> bool:
        return bool(self.suffix)

    def __str__(self) -> str:
        return format_identifier(self)


def _from_match(text: str) -> Identifier:
    digits = text.rstrip("abcdefghijklmnopqrstuvwxyz")
    suffix = text[len(digits) :]
    return Identifier(tuple(int(part) for part in digits.split(".")), suffix)


# ---------------------------------------------------------------------------
# Parse / format
# ---------------------------------------------------------------------------


def parse(raw: str) -> list[Identifier]:
    """Scan *raw* for identifiers, left to right, without overlap.

    Malformed matches (a zero segment or a leading zero) are skipped.
    Uppercase letters never extend a match, so ``"21A"`` yields ``21``.
    """
    found: list[Identifier] = []
    for match in IDENTIFIER_PATTERN.finditer(raw):
        text = match.group(0)
        if VALID_IDENTIFIER.match(text):
            found.append(_from_match(text))
    return found


def format_identifier(identifier: Identifier) -> str:
    """Render *identifier* back to its canonical string form."""
    return ".".join(str(segment) for segment in identifier.path) + identifier.suffix


def identifier_type(identifier: Identifier) -> ZettelType:
    return identifier.type


def level(identifier: Identifier) -> int:
    """Number of path segments; the branch suffix does not add a level."""
    return identifier.level


# ---------------------------------------------------------------------------
# Ancestry
# ---------------------------------------------------------------------------


def parent_of(identifier: Identifier) -> Identifier | None:
    """Infer the parent identifier.

    - Branch: strip the suffix entirely (``21.1b`` -> ``21.1``).
    - Sequence with several segments: drop the last (``21.1`` -> ``21``).
    - Single-segment sequence: None (root candidate).
    """
    if identifier.suffix:
        return Identifier(identifier.path)
    if len(identifier.path) > 1:
        return Identifier(identifier.path[:-1])
    return None


def is_descendant_or_equal(a: Identifier, b: Identifier) -> bool:
    """True iff *b* equals *a* or is written as *a* followed by ``.``."""
    a_text = format_identifier(a)
    b_text = format_identifier(b)
    return b_text == a_text or b_text.startswith(a_text + ".")


def in_subtree(root: Identifier, candidate: Identifier) -> bool:
    """True iff *candidate* lies in the subtree rooted at *root*.

    Unlike :func:`is_descendant_or_equal` this also catches branches of the
    root and of its descendants (``22a`` and ``22.1b`` under ``22``).
    A branch root has no descendants: branches never carry children.
    """
    if root.suffix:
        return candidate == root
    return candidate.path[: len(root.path)] == root.path


def rebase(identifier: Identifier, old_root: Identifier, new_root: Identifier) -> Identifier:
    """Rewrite *identifier* by swapping its *old_root* prefix for *new_root*."""
    if identifier == old_root:
        return new_root
    if not in_subtree(old_root, identifier):
        msg = f"{identifier} is not inside the subtree of {old_root}"
        raise ValueError(msg)
    tail = identifier.path[len(old_root.path) :]
    return Identifier(new_root.path + tail, identifier.suffix)


def first_child(parent: Identifier) -> Identifier:
    """The first child slot under *parent* (``21`` -> ``21.1``)."""
    if parent.suffix:
        msg = f"Branch identifier {parent} cannot carry sequence children"
        raise ValueError(msg)
    return Identifier(parent.path + (1,))


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------


def sibling_key(identifier: Identifier) -> tuple[tuple[int, ...], int, str]:
    """Sort key: numeric path, then suffix with ``z`` before ``aa``."""
    return (identifier.path, len(identifier.suffix), identifier.suffix)


def compare_siblings(a: Identifier, b: Identifier) -> int:
    """Three-way comparison by :func:`sibling_key`; returns -1, 0 or 1."""
    ka, kb = sibling_key(a), sibling_key(b)
    return (ka > kb) - (ka < kb)


# ---------------------------------------------------------------------------
# Allocation
# ---------------------------------------------------------------------------


def _next_suffix(suffix: str) -> str:
    """Bijective base-26 increment: ``"" -> a``, ``z -> aa``, ``az -> ba``."""
    letters = list(suffix)
    i = len(letters) - 1
    while i >= 0:
        if letters[i] != "z":
            letters[i] = chr(ord(letters[i]) + 1)
            return "".join(letters)
        letters[i] = "a"
        i -= 1
    return "a" + "".join(letters)


def _taken_set(taken: Iterable[Identifier | str]) -> set[str]:
    return {t if isinstance(t, str) else format_identifier(t) for t in taken}


def next_sequence(identifier: Identifier, taken: Iterable[Identifier | str]) -> Identifier:
    """Next free sequential continuation: ``21 -> 22``, ``21.1 -> 21.2``.

    A branch continues from its path (``21a -> 22``).
    """
    used = _taken_set(taken)
    *head, last = identifier.path
    candidate = Identifier((*head, last + 1))
    while format_identifier(candidate) in used:
        candidate = Identifier((*head, candidate.path[-1] + 1))
    return candidate


def next_branch(identifier: Identifier, taken: Iterable[Identifier | str]) -> Identifier:
    """Next free branch off *identifier*'s path: ``21 -> 21a``, ``21a -> 21b``."""
    used = _taken_set(taken)
    candidate = Identifier(identifier.path, _next_suffix(identifier.suffix))
    while format_identifier(candidate) in used:
        candidate = Identifier(identifier.path, _next_suffix(candidate.suffix))
    return candidate
