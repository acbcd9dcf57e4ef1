r"""Per-call traversal state handed to capabilities and validators."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Set, Union

from .accumulator import join_path

__all__ = ["ValidationContext", "format_path"]

Segment = Union[str, int]


def format_path(segments: List[Segment]) -> str:
    """Render path segments, e.g. ``["Children", 1, "Name"]`` -> ``Children[1].Name``."""
    path = ""
    for segment in segments:
        if isinstance(segment, int):
            path += f"[{segment}]"
        else:
            path = join_path(path, segment)
    return path


class ValidationContext:
    """State of one validation call.

    A context is created per top-level call and never shared between calls.
    The engine moves it through the graph with :meth:`descend` and
    :meth:`visit`, which restore the previous path and instance on exit.

    Attributes:
        recurse: Whether nested members and capabilities are evaluated.
        allow_async: Whether a synchronous call may block on async work.
        lookup: External-validator lookup (or None).
        items: Free-form per-call data for capabilities to share.
    """

    def __init__(
        self,
        recurse: bool = True,
        allow_async: bool = False,
        lookup: Any = None,
        items: Optional[Dict[str, Any]] = None,
    ):
        self.recurse = recurse
        self.allow_async = allow_async
        self.lookup = lookup
        self.items: Dict[str, Any] = dict(items or {})
        self.instance: Any = None
        self._segments: List[Segment] = []
        self._active: Set[int] = set()

    @property
    def segments(self) -> List[Segment]:
        return list(self._segments)

    @property
    def path(self) -> str:
        """The current path rendered as an error key (empty at the root)."""
        return format_path(self._segments)

    def member_path(self, name: str) -> str:
        return join_path(self.path, name)

    def is_active(self, obj: Any) -> bool:
        """True if `obj` is already being validated further up this path."""
        return id(obj) in self._active

    @contextmanager
    def descend(self, segment: Segment) -> Iterator["ValidationContext"]:
        self._segments.append(segment)
        try:
            yield self
        finally:
            self._segments.pop()

    @contextmanager
    def visit(self, obj: Any) -> Iterator["ValidationContext"]:
        previous = self.instance
        self.instance = obj
        self._active.add(id(obj))
        try:
            yield self
        finally:
            self._active.discard(id(obj))
            self.instance = previous

    def __repr__(self) -> str:
        return (
            f"ValidationContext(path={self.path!r}, recurse={self.recurse}, "
            f"allow_async={self.allow_async})"
        )
