from __future__ import annotations

import logging
from collections.abc import Mapping as MappingABC
from dataclasses import dataclass, field
from difflib import SequenceMatcher
from typing import Dict, Iterator, List, Mapping, Optional

from ..nodes import Block, Name, Node, RenamingConflict
from ..scope import Scope, declared_in, types_compatible
from ..simplify import simplify
from ..tree import is_type_reference, statement_list, walk

logger = logging.getLogger(__name__)


class Renaming(MappingABC):
    """Donor name -> target name, with the inverse kept alongside.

    A donor name binds to at most one target name and a target name is the
    image of at most one donor name. `bind` raises `RenamingConflict` when a
    new pair would break either rule.
    """

    def __init__(self, pairs: Optional[Mapping[str, str]] = None) -> None:
        self._forward: Dict[str, str] = {}
        self._inverse: Dict[str, str] = {}

        for donor_name, target_name in (pairs or {}).items():
            self.bind(donor_name, target_name)

    def __getitem__(self, donor_name: str) -> str:
        return self._forward[donor_name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._forward)

    def __len__(self) -> int:
        return len(self._forward)

    def __repr__(self) -> str:
        return f"Renaming({self._forward!r})"

    def is_image(self, target_name: str) -> bool:
        return target_name in self._inverse

    def source_of(self, target_name: str) -> Optional[str]:
        return self._inverse.get(target_name)

    def bind(self, donor_name: str, target_name: str) -> None:
        current = self._forward.get(donor_name)
        if current is not None:
            if current != target_name:
                raise RenamingConflict(donor_name, target_name)
            return

        owner = self._inverse.get(target_name)
        if owner is not None and owner != donor_name:
            raise RenamingConflict(donor_name, target_name)

        self._forward[donor_name] = target_name
        self._inverse[target_name] = donor_name

    def fork(self) -> Renaming:
        trial = Renaming()
        trial._forward = dict(self._forward)
        trial._inverse = dict(self._inverse)
        return trial

    def absorb(self, trial: Renaming) -> None:
        """Commit the bindings of a fork that succeeded."""
        self._forward = dict(trial._forward)
        self._inverse = dict(trial._inverse)

    def as_dict(self) -> Dict[str, str]:
        return dict(self._forward)


@dataclass(frozen=True)
class MatchContext:
    """Scopes for one top-level match.

    `scope` and `donor_scope` are widened with each side's own declarations;
    `visible` is what the target could already see before it.
    """
    scope: Scope
    donor_scope: Scope
    visible: Scope = field(default_factory=dict)

    @classmethod
    def build(cls, target: Node, donor: Node, scope: Mapping[str, str], donor_scope: Optional[Mapping[str, str]] = None) -> MatchContext:
        wide = dict(scope)
        for name, type_name in declared_in(target).items():
            wide.setdefault(name, type_name)

        donor_wide = dict(donor_scope or {})
        for name, type_name in declared_in(donor).items():
            donor_wide.setdefault(name, type_name)

        return cls(wide, donor_wide, dict(scope))


def comparable(target: Node, donor: Node) -> bool:
    """Same kind, or a donor block against anything that owns a statement list."""
    if target.KIND is donor.KIND:
        return True

    return isinstance(donor, Block) and statement_list(target) is not None

def bind_names(target: Name, donor: Name, ctx: MatchContext, renaming: Renaming) -> bool:
    t_name = target.identifier
    d_name = donor.identifier

    if is_type_reference(t_name) or is_type_reference(d_name):
        return t_name == d_name

    bound = renaming.get(d_name)
    if bound is not None:
        if bound == t_name:
            return True
        raise RenamingConflict(d_name, t_name)

    if renaming.is_image(t_name):
        raise RenamingConflict(d_name, t_name)

    if t_name not in ctx.scope:
        return t_name == d_name

    if not types_compatible(ctx.donor_scope.get(d_name), ctx.scope.get(t_name)):
        return False

    renaming.bind(d_name, t_name)
    return True

def _free_names(donor: Node) -> List[str]:
    seen: Dict[str, None] = {}

    for node in walk(donor):
        if isinstance(node, Name) and not is_type_reference(node.identifier):
            seen.setdefault(node.identifier, None)

    return list(seen)

def bind_free_variables(donor: Node, ctx: MatchContext, renaming: Renaming) -> None:
    """Give each still-unbound donor variable a target variable of a compatible type.

    The same name wins when it is available; otherwise the closest spelling
    among unclaimed scope entries, earliest in scope order on ties.
    """
    local = declared_in(donor)

    for name in _free_names(donor):
        if name in renaming or name in local:
            continue

        d_type = ctx.donor_scope.get(name)
        if name in ctx.scope and not renaming.is_image(name) and types_compatible(d_type, ctx.scope[name]):
            renaming.bind(name, name)
            continue

        options = [
            t_name for t_name, t_type in ctx.scope.items()
            if not renaming.is_image(t_name) and types_compatible(d_type, t_type)
        ]
        if not options:
            continue

        best = max(options, key=lambda t_name: SequenceMatcher(None, name, t_name).ratio())
        renaming.bind(name, best)

def translate(donor: Node, ctx: MatchContext, renaming: Renaming) -> Optional[str]:
    """Donor text spelled in the target's variables, or None if it cannot be.

    A donor that declares a name the target can already see is refused.
    """
    clashes = [name for name in declared_in(donor) if name in ctx.visible]
    if clashes:
        logger.debug("donor %s redeclares %s", donor.KIND.value, ", ".join(clashes))
        return None

    trial = renaming.fork()
    bind_free_variables(donor, ctx, trial)

    text = simplify(donor, ctx.scope, trial)
    if text is not None:
        renaming.absorb(trial)

    return text
