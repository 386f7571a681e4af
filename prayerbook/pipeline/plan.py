# prayerbook/pipeline/plan.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Sequence, Set, Tuple, Union

import yaml  # type: ignore

from prayerbook.config import cfg
from prayerbook.models import AUTHORS, Prayer, Tree
from .assemble import assemble, group_by_author, merge_buckets, promote, split_path
from .classify import UNCATEGORIZED, classify_corpus
from .filtering import sort_by_length, strip_kind
from .refine import refine
from .report import log
from .rules import RuleSet, RuleSetError, compile_rules

AUTHOR_SPLIT = "author"


@dataclass(frozen=True)
class Plan:
    """
    The whole classification, as data:
      passes          cascade; each pass sees the previous pass's remainder
      splits          level-1 label -> scoped RuleSet, or "author"
      promote         nested paths lifted to the top level
      merges          (into, from) pairs of flat buckets
      strip           annotation kind -> paths to strip it from
      sort_by_length  paths of buckets re-ordered for presentation
    """
    passes: Tuple[RuleSet, ...]
    splits: Dict[str, Union[RuleSet, str]] = field(default_factory=dict)
    authors: Tuple[str, ...] = AUTHORS
    promote: Tuple[str, ...] = ()
    merges: Tuple[Tuple[str, str], ...] = ()
    strip: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    sort_by_length: Tuple[str, ...] = ()


# --------- loading ----------
def load_yaml(path: Union[str, Path]) -> dict:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"rules not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _str_list(raw: Any, what: str) -> Tuple[str, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list) or not all(isinstance(x, str) and x for x in raw):
        raise RuleSetError(f"{what} must be a list of strings")
    return tuple(raw)


def load_plan(raw: Mapping[str, Any], default_threshold: int = cfg.LONG_TEXT_THRESHOLD) -> Plan:
    if not isinstance(raw, Mapping):
        raise RuleSetError("plan must be a mapping")
    passes_raw = raw.get("passes")
    if not isinstance(passes_raw, list) or not passes_raw:
        raise RuleSetError("plan needs at least one pass")

    passes: List[RuleSet] = []
    seen: Dict[str, str] = {}
    for i, p in enumerate(passes_raw):
        name = p.get("name") if isinstance(p, Mapping) else None
        name = name or f"pass{i + 1}"
        rs = compile_rules(p, name=name, default_threshold=default_threshold)
        for label in rs.labels:
            if label == UNCATEGORIZED:
                raise RuleSetError(f"{name}: {UNCATEGORIZED!r} is reserved for the final remainder")
            if label in seen:
                raise RuleSetError(f"{name}: label {label!r} already declared by pass {seen[label]!r}")
            seen[label] = name
        passes.append(rs)

    splits_raw = raw.get("splits") or {}
    if not isinstance(splits_raw, Mapping):
        raise RuleSetError("splits must map a category to 'author' or a rule set")
    splits: Dict[str, Union[RuleSet, str]] = {}
    for label, how in splits_raw.items():
        if label not in seen:
            raise RuleSetError(f"split of undeclared category {label!r}")
        if how == AUTHOR_SPLIT:
            splits[label] = AUTHOR_SPLIT
        else:
            rs = compile_rules(how, name=label, default_threshold=default_threshold)
            if rs.fallback is None:
                raise RuleSetError(f"split of {label!r} needs a catch-all category")
            splits[label] = rs

    top = set(seen) | {UNCATEGORIZED}
    promoted = _str_list(raw.get("promote"), "promote")
    for path in promoted:
        parts = _check_path(path, top, splits, "promote")
        if len(parts) < 2:
            raise RuleSetError(f"promote: {path!r} is already a top-level category")
    top |= {split_path(path)[-1] for path in promoted}

    merges: List[Tuple[str, str]] = []
    merge_raw = raw.get("merge") or []
    if not isinstance(merge_raw, list):
        raise RuleSetError("merge must be a list of {into, from} entries")
    for m in merge_raw:
        if not isinstance(m, Mapping) or not isinstance(m.get("into"), str) or not isinstance(m.get("from"), str):
            raise RuleSetError(f"merge entries need 'into' and 'from': {m!r}")
        _check_path(m["into"], top, splits, "merge")
        _check_path(m["from"], top, splits, "merge")
        merges.append((m["into"], m["from"]))

    strip_raw = raw.get("strip") or {}
    if not isinstance(strip_raw, Mapping):
        raise RuleSetError("strip must map a content kind to category paths")
    strip = {kind: _str_list(paths, f"strip.{kind}") for kind, paths in strip_raw.items()}
    for kind, paths in strip.items():
        for path in paths:
            _check_path(path, top, splits, f"strip.{kind}")

    by_length = _str_list(raw.get("sort_by_length"), "sort_by_length")
    for path in by_length:
        _check_path(path, top, splits, "sort_by_length")

    return Plan(
        passes=tuple(passes),
        splits=splits,
        authors=_str_list(raw.get("authors"), "authors") or AUTHORS,
        promote=promoted,
        merges=tuple(merges),
        strip=strip,
        sort_by_length=by_length,
    )


def _check_path(path: str, top: Set[str], splits: Mapping[str, Union[RuleSet, str]], what: str) -> List[str]:
    """Reject paths whose head (or rule-split child) no pass can produce."""
    try:
        parts = split_path(path)
    except ValueError as ex:
        raise RuleSetError(f"{what}: {ex}") from ex
    if parts[0] not in top:
        raise RuleSetError(f"{what}: unknown category {path!r}")
    how = splits.get(parts[0])
    if len(parts) > 1 and isinstance(how, RuleSet) and parts[1] not in how.labels:
        raise RuleSetError(f"{what}: {parts[0]!r} has no sub-category {parts[1]!r}")
    return parts


def load_plan_file(path: Union[str, Path]) -> Plan:
    return load_plan(load_yaml(path))


# --------- running ----------
def run_passes(corpus: Sequence[Prayer], passes: Sequence[RuleSet]) -> Tuple[Dict[str, List[Prayer]], List[Prayer]]:
    level1: Dict[str, List[Prayer]] = {}
    remainder: List[Prayer] = list(corpus)
    for rs in passes:
        part = classify_corpus(remainder, rs)
        level1.update(part.buckets)
        got = len(remainder) - len(part.uncategorized)
        log("PASS", f"{rs.name}: {got} categorised, {len(part.uncategorized)} left")
        remainder = part.uncategorized
    return level1, remainder


def run_plan(corpus: Sequence[Prayer], plan: Plan) -> Tree:
    level1, remainder = run_passes(corpus, plan.passes)
    if remainder:
        # kept in the tree so nothing is dropped; rule authors should widen the rules
        log("WARN", f"{len(remainder)} prayers matched no category -> {UNCATEGORIZED!r}")
        level1[UNCATEGORIZED] = remainder

    level2: Dict[str, Tree] = {}
    for label, how in plan.splits.items():
        if how == AUTHOR_SPLIT:
            level2[label] = group_by_author(level1[label], plan.authors)
        else:
            level2[label] = refine(level1[label], how)

    tree = assemble(level1, level2)
    for path in plan.promote:
        tree = promote(tree, path)
    for into, source in plan.merges:
        tree = merge_buckets(tree, into, source)
    for kind, paths in plan.strip.items():
        tree = strip_kind(tree, paths, kind)
    for path in plan.sort_by_length:
        tree = sort_by_length(tree, path)
    return tree
