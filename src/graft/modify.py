"""Pending edits derived from a successful match.

Every modification is keyed by the node that owns the edited position. A slot
or index means nothing outside that owner, so two modifications are equal only
when they name the same owner instance.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Union
from typing_extensions import TypeAlias

from .nodes import Node, Slot


@dataclass(frozen=True)
class Replacement:
    owner: Node
    slot: Slot
    text: str

    def describe(self) -> str:
        return f"replace {self.owner.KIND.value}.{self.slot.value} with {self.text!r}"

@dataclass(frozen=True)
class Insertion:
    """Insert `text` before the statement currently at `index`."""
    owner: Node
    index: int
    text: str

    def describe(self) -> str:
        return f"insert into {self.owner.KIND.value} at {self.index}: {self.text!r}"

@dataclass(frozen=True)
class Deletion:
    owner: Node
    index: int

    def describe(self) -> str:
        return f"delete {self.owner.KIND.value} statement {self.index}"

Modification: TypeAlias = Union[Replacement, Insertion, Deletion]


def dedupe(modifications: Iterable[Modification]) -> List[Modification]:
    """Drop repeated modifications, keeping first occurrences in order."""
    seen: set[Modification] = set()
    out: List[Modification] = []

    for mod in modifications:
        if mod in seen:
            continue
        seen.add(mod)
        out.append(mod)

    return out
