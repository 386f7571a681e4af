import re, unicodedata
from prayerbook.models import Prayer, paragraph_text

_COMBINING_RE = re.compile("[\u0300-\u036f]")
_NOT_MATCHABLE_RE = re.compile(r"[^a-z ]")

def norm_text(s: str) -> str:
    """
    Lowercase, drop diacritics, then delete everything outside [a-z ].
    Deleted characters leave no separator behind: "don't" -> "dont",
    and "a\\nb" -> "ab". Runs of spaces are kept as they are.
    """
    s = (s or "").lower()
    s = unicodedata.normalize("NFD", s)
    s = _COMBINING_RE.sub("", s)
    return _NOT_MATCHABLE_RE.sub("", s)

def joined_text(prayer: Prayer) -> str:
    return " ".join(paragraph_text(c) for c in prayer.content)

def normalize(prayer: Prayer) -> str:
    return norm_text(joined_text(prayer))

def raw_length(prayer: Prayer) -> int:
    return sum(len(paragraph_text(c)) for c in prayer.content)
