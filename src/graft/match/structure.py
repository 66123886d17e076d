"""Recursive structural matcher.

Every candidate path runs on a forked `Renaming` and commits only when it
succeeds. `RenamingConflict` unwinds to the nearest path boundary: a search
alternative in the kind-mismatch path, an anchor or gap pair in the aligner,
or the top-level `match`.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Union

from ..modify import Modification, Replacement, dedupe
from ..nodes import Name, Node, RenamingConflict, Slot
from ..render import LIST_SEPARATORS
from ..tree import descendant_levels, is_expression, statement_children, statement_list
from .context import MatchContext, Renaming, bind_names, comparable, translate
from .sequence import align_statements

logger = logging.getLogger(__name__)


@dataclass
class MatchResult:
    matched: bool
    renaming: Renaming
    modifications: List[Modification] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.matched


def match(target: Node, donor: Node, renaming: Renaming, scope: Mapping[str, str], modifications: List[Modification], donor_scope: Optional[Mapping[str, str]] = None) -> bool:
    """Match `donor` against `target`.

    On success `renaming` is extended and new modifications are appended to
    `modifications`; on failure both are left as they were.
    """
    ctx = MatchContext.build(target, donor, scope, donor_scope)
    trial = renaming.fork()
    found: List[Modification] = []

    try:
        ok = _match(target, donor, ctx, trial, found)
    except RenamingConflict as exc:
        logger.debug("match abandoned: %s", exc)
        return False

    if not ok:
        return False

    renaming.absorb(trial)
    for mod in dedupe(found):
        if mod not in modifications:
            modifications.append(mod)

    return True

def match_nodes(target: Node, donor: Node, scope: Mapping[str, str], donor_scope: Optional[Mapping[str, str]] = None) -> MatchResult:
    renaming = Renaming()
    modifications: List[Modification] = []
    matched = match(target, donor, renaming, scope, modifications, donor_scope)

    return MatchResult(matched, renaming, modifications)


def _match(target: Node, donor: Node, ctx: MatchContext, renaming: Renaming, out: List[Modification]) -> bool:
    if comparable(target, donor):
        return _match_same(target, donor, ctx, renaming, out)

    return _match_mismatch(target, donor, ctx, renaming, out)

def _attempt(target: Node, donor: Node, ctx: MatchContext, renaming: Renaming, out: List[Modification]) -> bool:
    """One search alternative: forked, committed on success, conflicts contained."""
    trial = renaming.fork()
    found: List[Modification] = []

    try:
        ok = _match(target, donor, ctx, trial, found)
    except RenamingConflict as exc:
        logger.debug("candidate %s/%s dropped: %s", target.KIND.value, donor.KIND.value, exc)
        return False

    if ok:
        renaming.absorb(trial)
        out.extend(found)

    return ok

def _match_same(target: Node, donor: Node, ctx: MatchContext, renaming: Renaming, out: List[Modification]) -> bool:
    if isinstance(target, Name) and isinstance(donor, Name):
        return bind_names(target, donor, ctx, renaming)

    t_stmts = statement_list(target)
    d_stmts = statement_list(donor)

    if target.KIND is not donor.KIND:
        # donor block against a foreign statement-list owner
        assert t_stmts is not None and d_stmts is not None
        return _align(target, t_stmts, d_stmts, ctx, renaming, out)

    found: List[Modification] = []
    strict = is_expression(target)

    for slot, attr in target.FIELDS:
        if not _match_slot(target, slot, getattr(target, attr), getattr(donor, attr), strict, ctx, renaming, found):
            return False

    if t_stmts is not None and d_stmts is not None:
        _align(target, t_stmts, d_stmts, ctx, renaming, found)

    if any(getattr(target, attr) != getattr(donor, attr) for attr in target.LOCALS):
        text = translate(donor, ctx, renaming)
        if text is None:
            if strict:
                return False
        else:
            out.append(Replacement(target, Slot.NODE, text))
            return True

    out.extend(found)
    return True

def _align(owner: Node, targets: List[Node], donors: List[Node], ctx: MatchContext, renaming: Renaming, out: List[Modification]) -> bool:
    def attempt(t: Node, d: Node, trial: Renaming, found: List[Modification]) -> bool:
        return _match_same(t, d, ctx, trial, found)

    def spell(d: Node, current: Renaming) -> Optional[str]:
        return translate(d, ctx, current)

    return align_statements(owner, targets, donors, attempt, spell, renaming, out)

def _replace(owner: Node, slot: Slot, text: Optional[str], strict: bool, out: List[Modification]) -> bool:
    if text is None:
        return not strict

    out.append(Replacement(owner, slot, text))
    return True

def _match_slot(owner: Node, slot: Slot, t_value: Union[Node, List[Node], None], d_value: Union[Node, List[Node], None], strict: bool, ctx: MatchContext, renaming: Renaming, out: List[Modification]) -> bool:
    if d_value is None:
        return True

    if isinstance(d_value, list):
        assert isinstance(t_value, list)

        if len(t_value) != len(d_value):
            return _replace(owner, slot, _translate_list(slot, d_value, ctx, renaming), strict, out)

        for t_item, d_item in zip(t_value, d_value):
            if not _match_child(t_item, Slot.NODE, t_item, d_item, strict, ctx, renaming, out):
                return False
        return True

    if t_value is None:
        return _replace(owner, slot, translate(d_value, ctx, renaming), strict, out)

    assert not isinstance(t_value, list)
    return _match_child(owner, slot, t_value, d_value, strict, ctx, renaming, out)

def _match_child(owner: Node, slot: Slot, t_child: Node, d_child: Node, strict: bool, ctx: MatchContext, renaming: Renaming, out: List[Modification]) -> bool:
    """Recurse into a same-kind pair; otherwise replace the position (owner, slot)."""
    if t_child.KIND is d_child.KIND:
        trial = renaming.fork()
        found: List[Modification] = []
        if _match_same(t_child, d_child, ctx, trial, found):
            renaming.absorb(trial)
            out.extend(found)
            return True

    return _replace(owner, slot, translate(d_child, ctx, renaming), strict, out)

def _translate_list(slot: Slot, items: List[Node], ctx: MatchContext, renaming: Renaming) -> Optional[str]:
    texts: List[str] = []

    for item in items:
        text = translate(item, ctx, renaming)
        if text is None:
            return None
        texts.append(text)

    return LIST_SEPARATORS.get(slot, ", ").join(texts)

def _match_mismatch(target: Node, donor: Node, ctx: MatchContext, renaming: Renaming, out: List[Modification]) -> bool:
    merged: List[Modification] = []
    matched = False

    for depth, level in enumerate(descendant_levels(donor), start=1):
        hit = False
        for candidate in level:
            if comparable(target, candidate) and _attempt(target, candidate, ctx, renaming, merged):
                hit = True
        if hit:
            logger.debug("%s matched inside donor %s at depth %d", target.KIND.value, donor.KIND.value, depth)
            matched = True
            break

    for child in statement_children(target):
        if _attempt(child, donor, ctx, renaming, merged):
            matched = True

    if matched:
        out.extend(dedupe(merged))

    return matched
