from __future__ import annotations
from typing import Dict

from prayerbook.models import Tree
from .assemble import SEP, iter_leaves

def log(k: str, msg: str) -> None:
    print(f"[{k}] {msg}")

def leaf_counts(tree: Tree) -> Dict[str, int]:
    """Leaf path ("Parent/Child") -> number of prayers, in tree order."""
    return {SEP.join(path): len(items) for path, items in iter_leaves(tree)}

def debug_stats(tree: Tree) -> None:
    counts = leaf_counts(tree)
    total = sum(counts.values())
    log("STATS", f"total: {total} | leaves: {len(counts)}")
    for path, n in counts.items():
        print(f"  {path:45s}  {n:4d}")
