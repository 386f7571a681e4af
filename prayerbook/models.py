from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple, Union

# canonical display order; any other tag is kept and sorted after these
AUTHORS = ("Bahá’u’lláh", "The Báb", "‘Abdu’l-Bahá")

# hyphen variants seen in author tags (U+2010, U+2011)
_HYPHENS = str.maketrans({"\u2010": "-", "\u2011": "-"})


def author_key(author: str) -> str:
    """Comparison form of an author tag: hyphen variants fold to '-'."""
    return author.translate(_HYPHENS)


class MalformedPrayerError(ValueError):
    """A corpus record that cannot be read as a prayer."""


@dataclass(frozen=True)
class Annotation:
    kind: str  # "info" | "call"
    text: str


@dataclass(frozen=True)
class LinedParagraph:
    text: str
    lines: Tuple[int, ...]


# bare strings are plain paragraphs
Paragraph = Union[str, Annotation, LinedParagraph]


@dataclass(frozen=True)
class Prayer:
    author: str
    content: Tuple[Paragraph, ...]
    # index of the record in the input corpus
    position: int = field(default=0, compare=False)


Tree = Dict[str, Union[List[Prayer], "Tree"]]


def paragraph_text(item: Paragraph) -> str:
    if isinstance(item, str):
        return item
    return item.text


def parse_paragraph(raw: Any, where: str) -> Paragraph:
    if isinstance(raw, str):
        return raw
    if not isinstance(raw, dict):
        raise MalformedPrayerError(f"{where}: unsupported content item {type(raw).__name__}")

    text = raw.get("text")
    if not isinstance(text, str):
        raise MalformedPrayerError(f"{where}: content item without text")

    if "type" in raw:
        kind = raw["type"]
        if not isinstance(kind, str) or not kind:
            raise MalformedPrayerError(f"{where}: annotation without a kind")
        return Annotation(kind=kind, text=text)

    if "lines" in raw:
        lines = raw["lines"]
        if not isinstance(lines, list) or not all(
            isinstance(n, int) and not isinstance(n, bool) for n in lines
        ):
            raise MalformedPrayerError(f"{where}: lines must be a list of integers")
        return LinedParagraph(text=text, lines=tuple(lines))

    raise MalformedPrayerError(f"{where}: unrecognised content item keys {sorted(raw)}")


def parse_prayer(raw: Any, position: int) -> Prayer:
    where = f"record {position}"
    if not isinstance(raw, dict):
        raise MalformedPrayerError(f"{where}: expected an object, got {type(raw).__name__}")

    author = raw.get("prayer")
    if not isinstance(author, str) or not author.strip():
        raise MalformedPrayerError(f"{where}: missing author tag")

    content = raw.get("content")
    if not isinstance(content, list):
        raise MalformedPrayerError(f"{where}: content must be a list")

    paragraphs = tuple(
        parse_paragraph(item, f"{where} item {i}") for i, item in enumerate(content)
    )
    return Prayer(author=author, content=paragraphs, position=position)


def parse_corpus(data: Any) -> List[Prayer]:
    # both shapes are accepted:
    # 1) {"prayers": [...]}
    # 2) [...]
    records = data.get("prayers") if isinstance(data, dict) else data
    if not isinstance(records, list):
        raise MalformedPrayerError("corpus must be a list of prayer records")
    return [parse_prayer(raw, i) for i, raw in enumerate(records)]


def paragraph_to_json(item: Paragraph) -> Any:
    if isinstance(item, str):
        return item
    if isinstance(item, Annotation):
        return {"type": item.kind, "text": item.text}
    return {"text": item.text, "lines": list(item.lines)}


def prayer_to_json(prayer: Prayer) -> Dict[str, Any]:
    return {
        "prayer": prayer.author,
        "content": [paragraph_to_json(c) for c in prayer.content],
    }
