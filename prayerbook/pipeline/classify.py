from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional

from prayerbook.models import Prayer
from .normalize import normalize
from .rules import RuleSet

UNCATEGORIZED = "Uncategorized"

def build_classifier(rule_set: RuleSet) -> Callable[[str], Optional[str]]:
    categories = rule_set.categories
    threshold = rule_set.long_text_threshold
    overrides = rule_set.overrides

    def classify(text: str) -> str|None:
        # long composite texts hit too many categories; only the overrides apply
        if threshold is not None and len(text) >= threshold:
            for ov in overrides:
                if ov.predicate.matches(text):
                    return ov.label
            return None
        for cat in categories:
            if cat.matches(text):
                return cat.label
        return None
    return classify

@dataclass
class Partition:
    buckets: Dict[str, List[Prayer]]
    uncategorized: List[Prayer]

    def counts(self) -> Dict[str, int]:
        return {label: len(items) for label, items in self.buckets.items()}

    def as_tree(self, remainder_label: str = UNCATEGORIZED) -> Dict[str, List[Prayer]]:
        tree = {label: list(items) for label, items in self.buckets.items()}
        tree[remainder_label] = list(self.uncategorized)
        return tree

def classify_corpus(corpus: Iterable[Prayer], rule_set: RuleSet) -> Partition:
    """
    One pass: every prayer lands in exactly one bucket, or in the remainder.
    Buckets are created for every declared label, in declaration order.
    """
    classify = build_classifier(rule_set)
    buckets: Dict[str, List[Prayer]] = {label: [] for label in rule_set.labels}
    uncategorized: List[Prayer] = []
    for prayer in corpus:
        label = classify(normalize(prayer))
        if label is None:
            uncategorized.append(prayer)
        else:
            buckets[label].append(prayer)
    return Partition(buckets=buckets, uncategorized=uncategorized)
