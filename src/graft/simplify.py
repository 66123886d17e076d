from __future__ import annotations

import logging
from typing import Mapping, Optional

from .nodes import Node
from .render import Unresolved, Renderer
from .scope import declared_in
from .tree import is_type_reference

logger = logging.getLogger(__name__)


def simplify(node: Node, scope: Mapping[str, str], renaming: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Render `node` using only variables available in `scope`.

    Names are first read through `renaming` (donor -> target), then looked up
    in `scope` or among the declarations `node` makes itself. A required child
    that cannot be spelled fails its parent; a statement list drops such
    members and fails only if none survive. Returns None on failure.
    """
    local = declared_in(node)

    def resolve(identifier: str) -> Optional[str]:
        if renaming is not None:
            bound = renaming.get(identifier)
            if bound is not None:
                return bound

        if identifier in scope or identifier in local:
            return identifier

        if is_type_reference(identifier):
            return identifier

        return None

    try:
        return Renderer(None, resolve, drop_failed=True).render(node)
    except Unresolved as exc:
        logger.debug("cannot simplify %s: %r is out of scope", node.KIND.value, exc.identifier)
        return None
