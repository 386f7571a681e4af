# prayerbook/pipeline/rules.py
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

LITERAL_WORD = "word"            # \b<escaped literal>\b
LITERAL_SUBSTRING = "substring"  # plain containment
LITERAL_MODES = (LITERAL_WORD, LITERAL_SUBSTRING)


class RuleSetError(ValueError):
    """Raised while loading rules, before any prayer is classified."""


@dataclass(frozen=True)
class Predicate:
    source: str
    is_pattern: bool
    regex: Optional[re.Pattern]  # None -> substring literal

    def matches(self, text: str) -> bool:
        if self.regex is None:
            return self.source in text
        return self.regex.search(text) is not None


@dataclass(frozen=True)
class Category:
    label: str
    predicates: Tuple[Predicate, ...]
    catch_all: bool = False

    def matches(self, text: str) -> bool:
        if self.catch_all:
            return True
        return any(p.matches(text) for p in self.predicates)


@dataclass(frozen=True)
class Override:
    label: str
    predicate: Predicate


@dataclass(frozen=True)
class RuleSet:
    name: str
    categories: Tuple[Category, ...]
    long_text_threshold: Optional[int] = None
    overrides: Tuple[Override, ...] = ()

    @property
    def labels(self) -> List[str]:
        return [c.label for c in self.categories]

    @property
    def fallback(self) -> Optional[str]:
        for c in self.categories:
            if c.catch_all:
                return c.label
        return None


def literal(phrase: str, mode: str = LITERAL_WORD) -> Predicate:
    if mode == LITERAL_SUBSTRING:
        return Predicate(source=phrase, is_pattern=False, regex=None)
    # "" compiles to \b\b and so matches any text holding a word character
    return Predicate(source=phrase, is_pattern=False, regex=re.compile(rf"\b{re.escape(phrase)}\b"))


def pattern(expr: str) -> Predicate:
    try:
        compiled = re.compile(expr, re.I)
    except re.error as ex:
        raise RuleSetError(f"invalid pattern {expr!r}: {ex}") from ex
    return Predicate(source=expr, is_pattern=True, regex=compiled)


def _predicate(raw: Any, mode: str, where: str) -> Predicate:
    if isinstance(raw, str):
        return literal(raw, mode)
    if isinstance(raw, re.Pattern):
        return Predicate(source=raw.pattern, is_pattern=True, regex=raw)
    if isinstance(raw, dict) and set(raw) == {"re"} and isinstance(raw["re"], str):
        return pattern(raw["re"])
    raise RuleSetError(f"{where}: unsupported predicate {raw!r}")


def _category(label: Any, raw: Any, mode: str, name: str) -> Category:
    if not isinstance(label, str) or not label:
        raise RuleSetError(f"{name}: category labels must be non-empty strings, got {label!r}")
    where = f"{name}/{label}"

    catch_all = False
    preds: Iterable[Any]
    if isinstance(raw, dict):
        unknown = set(raw) - {"predicates", "catch_all"}
        if unknown:
            raise RuleSetError(f"{where}: unknown keys {sorted(unknown)}")
        catch_all = bool(raw.get("catch_all", False))
        preds = raw.get("predicates") or []
    elif isinstance(raw, (list, tuple)):
        preds = raw
    else:
        raise RuleSetError(f"{where}: expected a predicate list, got {type(raw).__name__}")

    predicates = tuple(_predicate(p, mode, where) for p in preds)
    if not predicates and not catch_all:
        raise RuleSetError(f"{where}: category has no predicates")
    return Category(label=label, predicates=predicates, catch_all=catch_all)


def compile_rules(raw: Mapping[str, Any], name: str = "rules",
                  default_threshold: int = 11000) -> RuleSet:
    """
    Build a RuleSet from its plain-data form (as read from YAML):

        literals: word | substring        # optional, default word
        long_text:                        # optional
          threshold: 11000                # optional, default_threshold
          overrides:
            - {category: Fast, literal: observe the fast}
            - {category: Particular, re: 'bay[ae]n'}
        categories:
          Label: [literal, {re: pattern}, ...]
          Other: {catch_all: true}

    Category order is kept as declared: it decides which category wins.
    """
    if not isinstance(raw, Mapping):
        raise RuleSetError(f"{name}: rule set must be a mapping")

    mode = raw.get("literals", LITERAL_WORD)
    if mode not in LITERAL_MODES:
        raise RuleSetError(f"{name}: literals must be one of {LITERAL_MODES}, got {mode!r}")

    cats_raw = raw.get("categories")
    if not isinstance(cats_raw, Mapping) or not cats_raw:
        raise RuleSetError(f"{name}: no categories")

    categories = tuple(_category(label, preds, mode, name) for label, preds in cats_raw.items())
    catch_alls = [c.label for c in categories if c.catch_all]
    if len(catch_alls) > 1:
        raise RuleSetError(f"{name}: more than one catch-all category: {catch_alls}")

    threshold: Optional[int] = None
    overrides: List[Override] = []
    long_text = raw.get("long_text")
    if long_text is not None:
        if not isinstance(long_text, Mapping):
            raise RuleSetError(f"{name}: long_text must be a mapping")
        threshold = long_text.get("threshold", default_threshold)
        if not isinstance(threshold, int) or isinstance(threshold, bool) or threshold <= 0:
            raise RuleSetError(f"{name}: long_text threshold must be a positive integer")
        labels = {c.label for c in categories}
        for i, ov in enumerate(long_text.get("overrides") or []):
            where = f"{name}/long_text[{i}]"
            if not isinstance(ov, Mapping) or ov.get("category") not in labels:
                raise RuleSetError(f"{where}: override must name a declared category")
            if "literal" in ov:
                pred = _predicate(ov["literal"], mode, where)
            else:
                pred = _predicate({"re": ov.get("re")}, mode, where)
            overrides.append(Override(label=ov["category"], predicate=pred))

    return RuleSet(name=name, categories=categories,
                   long_text_threshold=threshold, overrides=tuple(overrides))


def rule_summary(rule_set: RuleSet) -> Dict[str, int]:
    return {c.label: len(c.predicates) for c in rule_set.categories}
