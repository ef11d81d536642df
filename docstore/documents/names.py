"""
Document names — validation and conversion to/from path segments.

A Name is a nonempty sequence of segments, each a slash followed by one or
more printable ASCII characters other than the slash itself (\\x20-\\x2E,
\\x30-\\x7E). A segment may not be "." or "..". The last segment is the
document's title.

Examples:
    validate_name("/Foo/Bar")          -> True
    name_to_segments("/Foo/Bar")       -> ["Foo", "Bar"]
    segments_to_name(["Foo", "Bar"])   -> "/Foo/Bar"
    name_to_segments("/Foo/Bar/")      -> []
"""

from __future__ import annotations

import re
from typing import Iterable, List

SEPARATOR = "/"

# Root of the hierarchy for descendant queries; never a valid Name itself.
ROOT = ""

_SEGMENT_CHARS = r"[\x20-\x2E\x30-\x7E]"
_NAME_RE = re.compile(rf"(?:/{_SEGMENT_CHARS}+)+")
_SEGMENT_RE = re.compile(rf"{_SEGMENT_CHARS}+")
_DOTS_RE = re.compile(r"/\.\.?(?:/|$)")


def validate_name(name: str) -> bool:
    """Return True if ``name`` is a legal document Name."""
    if not isinstance(name, str):
        return False
    return _NAME_RE.fullmatch(name) is not None and _DOTS_RE.search(name) is None


def name_to_segments(name: str) -> List[str]:
    """Split a Name into its segments. Returns [] if the Name is invalid."""
    if not validate_name(name):
        return []
    return name[1:].split(SEPARATOR)


def segments_to_name(segments: Iterable[str]) -> str:
    """
    Join segments into a Name. Returns "" if there are no segments or any
    segment is empty, contains a slash, or has a non-printable-ASCII char.

    "." and ".." are not rejected here; run validate_name() on the result
    where dot segments matter.
    """
    parts = list(segments)
    if not parts:
        return ""
    for part in parts:
        if not isinstance(part, str) or _SEGMENT_RE.fullmatch(part) is None:
            return ""
    return SEPARATOR + SEPARATOR.join(parts)


def validate_prefix(prefix: str) -> bool:
    """Descendant queries accept the root ("") in addition to valid Names."""
    return prefix == ROOT or validate_name(prefix)


def is_descendant(name: str, ancestor: str) -> bool:
    """True if ``name`` strictly extends ``ancestor`` in the segment hierarchy."""
    if not validate_name(name) or not validate_prefix(ancestor):
        return False
    return name.startswith(ancestor + SEPARATOR)


def document_title(name: str) -> str:
    """The last segment of a Name, or "" if the Name is invalid."""
    segments = name_to_segments(name)
    return segments[-1] if segments else ""
