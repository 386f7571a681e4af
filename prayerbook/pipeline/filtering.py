from __future__ import annotations
from dataclasses import replace
from typing import Iterable, List

from prayerbook.models import Annotation, Prayer, Tree
from .assemble import copy_tree, get_node, split_path
from .normalize import raw_length

def _strip_prayer(prayer: Prayer, kind: str) -> Prayer:
    kept = tuple(c for c in prayer.content if not (isinstance(c, Annotation) and c.kind == kind))
    if len(kept) == len(prayer.content):
        return prayer
    # new record: the unstripped one may still sit in other buckets
    return replace(prayer, content=kept)

def _strip_node(node, kind: str):
    if isinstance(node, dict):
        return {k: _strip_node(v, kind) for k, v in node.items()}
    return [_strip_prayer(p, kind) for p in node]

def strip_kind(tree: Tree, paths: Iterable[str], kind: str = "info") -> Tree:
    """Drop `kind` annotations from prayers under the named categories only."""
    out = copy_tree(tree)
    for path in paths:
        get_node(out, path)  # fail on unknown categories
        *parent_parts, label = split_path(path)
        parent = get_node(out, "/".join(parent_parts)) if parent_parts else out
        parent[label] = _strip_node(parent[label], kind)
    return out

def sort_by_length(tree: Tree, path: str) -> Tree:
    """Ascending by summed raw content length; ties keep their order."""
    out = copy_tree(tree)
    bucket = get_node(out, path)
    if isinstance(bucket, dict):
        raise ValueError(f"{path!r} is not a flat bucket")
    *parent_parts, label = split_path(path)
    parent = get_node(out, "/".join(parent_parts)) if parent_parts else out
    ordered: List[Prayer] = sorted(bucket, key=raw_length)
    parent[label] = ordered
    return out
