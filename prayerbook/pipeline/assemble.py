# prayerbook/pipeline/assemble.py
from __future__ import annotations

from typing import Dict, Iterator, List, Mapping, Sequence, Tuple

from prayerbook.models import AUTHORS, Prayer, Tree, author_key

SEP = "/"


def split_path(path: str) -> List[str]:
    parts = [p.strip() for p in (path or "").split(SEP)]
    if not all(parts):
        raise ValueError(f"bad category path {path!r}")
    return parts


def get_node(tree: Tree, path: str):
    node = tree
    for part in split_path(path):
        if not isinstance(node, dict) or part not in node:
            raise ValueError(f"no category {path!r} in tree")
        node = node[part]
    return node


def copy_tree(tree: Tree) -> Tree:
    return {k: copy_tree(v) if isinstance(v, dict) else list(v) for k, v in tree.items()}


def iter_leaves(tree: Tree, prefix: Tuple[str, ...] = ()) -> Iterator[Tuple[Tuple[str, ...], List[Prayer]]]:
    for label, node in tree.items():
        path = prefix + (label,)
        if isinstance(node, dict) and node:
            yield from iter_leaves(node, path)
        elif isinstance(node, dict):
            # empty split (e.g. author split of an empty bucket) stays visible
            yield path, []
        else:
            yield path, node


def count_prayers(node) -> int:
    if isinstance(node, dict):
        return sum(len(items) for _, items in iter_leaves(node))
    return len(node)


# --------- partition sources ----------
def group_by_author(prayers: Sequence[Prayer], order: Sequence[str] = AUTHORS) -> Dict[str, List[Prayer]]:
    """
    Canonical authors first, then unknown authors in first-seen order.
    Tags differing only in hyphen form share a group, labelled with the
    canonical spelling when there is one.
    """
    canonical = {author_key(a): a for a in order}
    by_key: Dict[str, List[Prayer]] = {}
    label: Dict[str, str] = {}
    for p in prayers:
        key = author_key(p.author)
        by_key.setdefault(key, []).append(p)
        label.setdefault(key, canonical.get(key, p.author))
    ordered = [k for k in canonical if k in by_key]
    ordered += [k for k in by_key if k not in canonical]
    return {label[k]: by_key[k] for k in ordered}


def assemble(level1: Mapping[str, List[Prayer]], level2: Mapping[str, Tree]) -> Tree:
    """
    Replace each level-1 bucket named in `level2` with its nested partition.
    The nested partition must hold exactly the prayers of the bucket it replaces.
    """
    unknown = [label for label in level2 if label not in level1]
    if unknown:
        raise ValueError(f"split of unknown categories: {unknown}")

    tree: Tree = {}
    for label, prayers in level1.items():
        if label not in level2:
            tree[label] = list(prayers)
            continue
        sub = level2[label]
        if count_prayers(sub) != len(prayers):
            raise ValueError(
                f"split of {label!r} holds {count_prayers(sub)} prayers, bucket has {len(prayers)}"
            )
        tree[label] = copy_tree(sub)
    return tree


# --------- reshaping ----------
def promote(tree: Tree, path: str) -> Tree:
    """Move a nested bucket to the top level, right before its former parent."""
    parts = split_path(path)
    if len(parts) < 2:
        raise ValueError(f"{path!r} is already a top-level category")
    label = parts[-1]
    if label in tree:
        raise ValueError(f"cannot promote {path!r}: {label!r} already exists at the top level")

    out = copy_tree(tree)
    parent = get_node(out, SEP.join(parts[:-1]))
    if not isinstance(parent, dict) or label not in parent:
        raise ValueError(f"no category {path!r} in tree")
    node = parent.pop(label)

    reordered: Tree = {}
    for k, v in out.items():
        if k == parts[0]:
            reordered[label] = node
        reordered[k] = v
    return reordered


def merge_buckets(tree: Tree, into: str, source: str) -> Tree:
    """
    Union two flat buckets into `into`, re-sorted stably by corpus position,
    and drop `source` from the tree.
    """
    if split_path(into) == split_path(source):
        raise ValueError(f"cannot merge {into!r} into itself")
    out = copy_tree(tree)
    target = get_node(out, into)
    extra = get_node(out, source)
    if isinstance(target, dict) or isinstance(extra, dict):
        raise ValueError(f"only flat buckets can be merged ({into!r} <- {source!r})")

    merged = sorted(target + extra, key=lambda p: p.position)
    *into_parent, into_label = split_path(into)
    *src_parent, src_label = split_path(source)
    (get_node(out, SEP.join(into_parent)) if into_parent else out)[into_label] = merged
    del (get_node(out, SEP.join(src_parent)) if src_parent else out)[src_label]
    return out
