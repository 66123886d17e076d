from __future__ import annotations

import argparse
import difflib
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from .config import RepairConfig
from .localize import SuspiciousLocation, load_locations, select_targets
from .nodes import GraftError
from .parse import parse_file
from .render import render
from .repair import Donor, Patch, donor_fragments, propose_patches
from .scope import Scope
from .tree import SyntaxTree

logger = logging.getLogger(__name__)


def _scope_entry(text: str) -> Tuple[str, str]:
    name, sep, type_name = text.partition(":")
    if not sep or not name.strip() or not type_name.strip():
        raise argparse.ArgumentTypeError(f"expected NAME:TYPE, got {text!r}")

    return name.strip(), type_name.strip()

def build_arg_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="graft", description="Propose donor-based patches for suspicious statements")
    ap.add_argument("source", help="File holding the statements to repair")
    ap.add_argument("-l", "--line", action="append", default=[], metavar="START[-END]", help="Suspicious line span in SOURCE (repeatable)")
    ap.add_argument("--locations", metavar="FILE", help="File of PATH:START[-END][,SCORE] lines")
    ap.add_argument("-d", "--donor", action="append", default=[], metavar="FILE", help="Donor file (repeatable; defaults to SOURCE)")
    ap.add_argument("-s", "--scope", action="append", default=[], type=_scope_entry, metavar="NAME:TYPE", help="Variable visible at every target (repeatable)")
    ap.add_argument("--max-donors", type=int, default=RepairConfig.max_donors)
    ap.add_argument("--min-similarity", type=float, default=RepairConfig.min_similarity)
    ap.add_argument("--max-patches", type=int, default=RepairConfig.max_patches)
    ap.add_argument("--tree", action="store_true", help="Print the lowered tree of SOURCE and exit")
    ap.add_argument("-v", "--verbose", action="store_true", help="Log matcher decisions to stderr")
    return ap

def _locations(args: argparse.Namespace) -> List[SuspiciousLocation]:
    found = [SuspiciousLocation.parse(f"{args.source}:{span}") for span in args.line]

    if args.locations:
        found.extend(load_locations(args.locations))

    return found

def format_patch(index: int, patch: Patch, before: str, path: str) -> str:
    diff = difflib.unified_diff(
        before.splitlines(keepends=True),
        (patch.text + "\n").splitlines(keepends=True),
        fromfile=f"a/{path}",
        tofile=f"b/{path}",
    )
    return f"# patch {index}: {patch.describe()}\n" + "".join(diff)

def run(args: argparse.Namespace) -> int:
    trees: Dict[str, SyntaxTree] = {args.source: parse_file(args.source)}

    if args.tree:
        print(trees[args.source].pretty(), end="")
        return 0

    config = RepairConfig(args.max_donors, args.min_similarity, args.max_patches)
    extra: Scope = dict(args.scope)

    locations = _locations(args)
    for loc in locations:
        if loc.path not in trees and Path(loc.path).exists():
            trees[loc.path] = parse_file(loc.path)

    donor_trees = [parse_file(p) for p in args.donor] if args.donor else list(trees.values())
    donors: List[Donor] = [d for tree in donor_trees for d in donor_fragments(tree, extra)]
    logger.debug("%d donor fragment(s) from %d file(s)", len(donors), len(donor_trees))

    targets = select_targets(trees, locations)
    if not targets:
        sys.stderr.write("No suspicious statement selected\n")
        return 1

    count = 0
    for loc, target in targets:
        tree = trees[loc.path]
        before = render(tree.root) + "\n"
        for patch in propose_patches(tree, target, donors, config, extra):
            count += 1
            print(format_patch(count, patch, before, loc.path))

    if count == 0:
        sys.stderr.write("No patch found\n")
        return 1

    return 0

def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        return run(args)
    except (GraftError, OSError) as err:
        sys.stderr.write(f"{err}\n")
        return 1

if __name__ == "__main__":
    sys.exit(main())
