from __future__ import annotations
from typing import Dict, Iterable, List, Optional

from prayerbook.models import Prayer
from .classify import build_classifier
from .normalize import normalize
from .rules import RuleSet, RuleSetError

def refine(prayers: Iterable[Prayer], rule_set: RuleSet,
           default: Optional[str] = None) -> Dict[str, List[Prayer]]:
    """
    Second-level pass over the members of one bucket (or a remainder).
    Unlike classify_corpus it is total: whatever the rules miss goes to the
    default sub-bucket, which is `default` or else the rule set's catch-all.
    """
    default = default or rule_set.fallback
    if default is None:
        raise RuleSetError(f"{rule_set.name}: refining needs a catch-all category or a default bucket")

    buckets: Dict[str, List[Prayer]] = {label: [] for label in rule_set.labels}
    buckets.setdefault(default, [])

    classify = build_classifier(rule_set)
    for prayer in prayers:
        label = classify(normalize(prayer)) or default
        buckets[label].append(prayer)
    return buckets
