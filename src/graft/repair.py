"""Donor ranking, matching and patch rendering for a single target."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Mapping, Optional, Set, Tuple

from .config import RepairConfig
from .features import similarity
from .match.context import Renaming
from .match.structure import match_nodes
from .modify import Modification
from .nodes import Block, Node, SwitchCase
from .render import Overlay, render
from .scope import Scope, scope_at
from .tree import SyntaxTree, statement_list, walk

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class Donor:
    node: Node
    scope: Scope
    origin: str = "<donor>"


@dataclass
class Candidate:
    donor: Donor
    similarity: float
    matched: bool
    renaming: Renaming
    modifications: List[Modification] = field(default_factory=list)


@dataclass(frozen=True)
class Patch:
    """One modification applied on a fresh overlay, with the unit rendered."""
    candidate: Candidate
    modification: Modification
    text: str

    def describe(self) -> str:
        return f"{self.modification.describe()} (from {self.candidate.donor.origin}, similarity {self.candidate.similarity:.3f})"


def donor_fragments(tree: SyntaxTree, extra: Optional[Mapping[str, str]] = None) -> Iterator[Donor]:
    """Each statement of each statement list, wrapped as a one-statement block.

    Case labels are skipped. The scope is the one visible where the statement
    sits in `tree`.
    """
    where = tree.path or "<source>"

    for owner in tree:
        stmts = statement_list(owner)
        if not stmts:
            continue

        for stmt in stmts:
            if isinstance(stmt, SwitchCase):
                continue
            origin = f"{where}:{stmt.span.start_line}"
            yield Donor(Block([stmt], span=stmt.span), scope_at(tree, stmt, extra), origin)

def rank_donors(target: Node, donors: Iterable[Donor], config: RepairConfig) -> List[Tuple[float, Donor]]:
    """Donors at or above the similarity floor, best first, capped at `max_donors`."""
    scored: List[Tuple[float, Donor]] = []

    for donor in donors:
        score = similarity(target, donor.node)
        if score < config.min_similarity:
            continue
        scored.append((score, donor))

    scored.sort(key=lambda pair: -pair[0])
    return scored[:config.max_donors]

def _overlaps(target: Node, donor: Donor) -> bool:
    """Whether the donor fragment contains the target or lies inside it."""
    inner = {id(n) for n in walk(target)}

    return any(id(n) in inner for stmt in statement_list(donor.node) or [] for n in walk(stmt))

def find_candidates(target: Node, scope: Mapping[str, str], donors: Iterable[Donor], config: RepairConfig) -> List[Candidate]:
    candidates: List[Candidate] = []

    for score, donor in rank_donors(target, [d for d in donors if not _overlaps(target, d)], config):
        result = match_nodes(target, donor.node, scope, donor.scope)
        if not result.matched:
            logger.debug("donor %s does not match %s", donor.origin, target.KIND.value)
            continue
        if not result.modifications:
            logger.debug("donor %s matches %s without edits", donor.origin, target.KIND.value)
            continue

        logger.debug(
            "donor %s: %d modification(s), renaming %s",
            donor.origin, len(result.modifications), result.renaming.as_dict(),
        )
        candidates.append(Candidate(donor, score, True, result.renaming, result.modifications))

    return candidates

def propose_patches(tree: SyntaxTree, target: Node, donors: Iterable[Donor], config: Optional[RepairConfig] = None, extra_scope: Optional[Mapping[str, str]] = None) -> List[Patch]:
    """Render one patch per usable modification, best donors first.

    Every patch gets its own overlay. Patches whose rendering repeats an
    earlier one are dropped.
    """
    config = config or RepairConfig()
    scope = scope_at(tree, target, extra_scope)
    patches: List[Patch] = []
    seen: Set[str] = {render(tree.root)}

    for candidate in find_candidates(target, scope, donors, config):
        for mod in candidate.modifications:
            overlay = Overlay()
            if not overlay.adapt(mod):
                logger.debug("rejected %s", mod.describe())
                continue

            text = overlay.render(tree.root)
            if text in seen:
                continue
            seen.add(text)

            patches.append(Patch(candidate, mod, text))
            if len(patches) >= config.max_patches:
                logger.info("patch limit %d reached", config.max_patches)
                return patches

    logger.info("%d patch(es) for %s at line %d", len(patches), target.KIND.value, target.span.start_line)
    return patches

