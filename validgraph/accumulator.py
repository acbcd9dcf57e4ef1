r"""Ordered, path-keyed error accumulation.

`ErrorMap` maps error paths (``"Child.Field"``, ``"Children[1].Name"``) to the
list of messages produced for that path. Keys keep the order in which they
were first produced, so a depth-first walk yields shallow paths before the
deeper paths it discovers later.
"""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

__all__ = ["ErrorMap", "join_path"]


def join_path(prefix: str, key: str) -> str:
    """Join a path prefix and a relative key.

    Member names are separated by ``.``, index segments (``[i]``) attach
    directly, and an empty side yields the other side unchanged.

        >>> join_path("Child", "Field")
        'Child.Field'
        >>> join_path("Children", "[1].Field")
        'Children[1].Field'
        >>> join_path("", "[0]")
        '[0]'
    """
    if not prefix:
        return key
    if not key:
        return prefix
    if key.startswith("["):
        return prefix + key
    return f"{prefix}.{key}"


class ErrorMap(Mapping[str, List[str]]):
    """Ordered mapping of error path to messages with prefix-merge semantics."""

    __slots__ = ("_errors",)

    def __init__(self, errors: Optional[Mapping[str, Iterable[str]]] = None):
        self._errors: Dict[str, List[str]] = {}
        if errors:
            for key, messages in errors.items():
                for message in messages:
                    self.add(key, message)

    def __getitem__(self, key: str) -> List[str]:
        return self._errors[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._errors)

    def __len__(self) -> int:
        return len(self._errors)

    def __bool__(self) -> bool:
        return bool(self._errors)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ErrorMap):
            return list(self._errors.items()) == list(other._errors.items())
        if isinstance(other, Mapping):
            return self._errors == dict(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"ErrorMap({self._errors!r})"

    def add(self, key: str, message: str) -> None:
        """Append `message` under `key`, creating the key on first use."""
        self._errors.setdefault(key, []).append(message)

    def merge(self, prefix: str, child: "ErrorMap") -> None:
        """Fold `child` into this map with every key re-rooted under `prefix`.

        Existing keys are never replaced; their message lists are extended.
        """
        for key, messages in child.items():
            self._errors.setdefault(join_path(prefix, key), []).extend(messages)

    def pairs(self) -> List[Tuple[str, str]]:
        """Return every ``(path, message)`` pair in insertion order."""
        return [
            (key, message)
            for key, messages in self._errors.items()
            for message in messages
        ]

    def to_dict(self) -> Dict[str, List[str]]:
        """Return a plain ``dict`` copy (message lists copied too)."""
        return {key: list(messages) for key, messages in self._errors.items()}
