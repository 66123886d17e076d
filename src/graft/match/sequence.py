"""Ordered alignment of a donor statement list against a target statement list.

Donor statements are anchored, in order, to the first later target statement
they match cleanly. The gaps between anchors are reconciled positionally;
statements on either side of the anchored span are handled as insertions only.
"""
from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence, Tuple

from ..modify import Deletion, Insertion, Modification, Replacement
from ..nodes import Node, RenamingConflict, Slot
from .context import Renaming, comparable

logger = logging.getLogger(__name__)

# (target, donor, renaming, modifications) -> matched
AttemptFunc = Callable[[Node, Node, Renaming, List[Modification]], bool]
TranslateFunc = Callable[[Node, Renaming], Optional[str]]


def _clean_match(target: Node, donor: Node, attempt: AttemptFunc, renaming: Renaming) -> bool:
    if not comparable(target, donor):
        return False

    trial = renaming.fork()
    found: List[Modification] = []

    try:
        ok = attempt(target, donor, trial, found)
    except RenamingConflict:
        return False

    if not ok or found:
        return False

    renaming.absorb(trial)
    return True

def find_anchors(targets: Sequence[Node], donors: Sequence[Node], attempt: AttemptFunc, renaming: Renaming) -> List[Tuple[int, int]]:
    """(donor index, target index) pairs, both strictly increasing."""
    anchors: List[Tuple[int, int]] = []
    start = 0

    for d_idx, donor in enumerate(donors):
        for t_idx in range(start, len(targets)):
            if _clean_match(targets[t_idx], donor, attempt, renaming):
                anchors.append((d_idx, t_idx))
                start = t_idx + 1
                break

    return anchors

def _insert_run(owner: Node, index: int, run: Sequence[Node], translate: TranslateFunc, renaming: Renaming, out: List[Modification]) -> None:
    texts = [text for text in (translate(stmt, renaming) for stmt in run) if text is not None]

    if texts:
        out.append(Insertion(owner, index, "\n".join(texts)))

def _reconcile_gap(owner: Node, t_start: int, t_gap: Sequence[Node], d_gap: Sequence[Node], insert_at: int, attempt: AttemptFunc, translate: TranslateFunc, renaming: Renaming, out: List[Modification]) -> None:
    paired = min(len(t_gap), len(d_gap))

    for t_stmt, d_stmt in zip(t_gap[:paired], d_gap[:paired]):
        if comparable(t_stmt, d_stmt):
            trial = renaming.fork()
            found: List[Modification] = []
            try:
                ok = attempt(t_stmt, d_stmt, trial, found)
            except RenamingConflict:
                logger.debug("gap pair %s/%s conflicts; replacing", t_stmt.KIND.value, d_stmt.KIND.value)
                ok = False
            if ok:
                renaming.absorb(trial)
                out.extend(found)
                continue

        text = translate(d_stmt, renaming)
        if text is not None:
            out.append(Replacement(t_stmt, Slot.NODE, text))

    _insert_run(owner, insert_at, d_gap[paired:], translate, renaming, out)

    for offset in range(paired, len(t_gap)):
        out.append(Deletion(owner, t_start + offset))

def align_statements(owner: Node, targets: Sequence[Node], donors: Sequence[Node], attempt: AttemptFunc, translate: TranslateFunc, renaming: Renaming, out: List[Modification]) -> bool:
    """Append the edits that turn `targets` (the list owned by `owner`) toward `donors`.

    A renaming conflict while pairing a gap only abandons that pair, which is
    then replaced outright. Alignment itself never fails.
    """
    anchors = find_anchors(targets, donors, attempt, renaming)
    logger.debug("aligned %d of %d donor statements against %s", len(anchors), len(donors), owner.KIND.value)

    if not anchors:
        _insert_run(owner, 0, donors, translate, renaming, out)
        return True

    first_d, first_t = anchors[0]
    _insert_run(owner, first_t, donors[:first_d], translate, renaming, out)

    for (prev_d, prev_t), (next_d, next_t) in zip(anchors, anchors[1:]):
        _reconcile_gap(
            owner,
            prev_t + 1,
            targets[prev_t + 1:next_t],
            donors[prev_d + 1:next_d],
            next_t,
            attempt,
            translate,
            renaming,
            out,
        )

    last_d, last_t = anchors[-1]
    _insert_run(owner, last_t + 1, donors[last_d + 1:], translate, renaming, out)

    return True
