import json
from pathlib import Path
from typing import Any, List, Union

from prayerbook.models import Prayer, Tree, parse_corpus, prayer_to_json

def tree_to_json(tree: Tree) -> Any:
    return {
        label: tree_to_json(node) if isinstance(node, dict) else [prayer_to_json(p) for p in node]
        for label, node in tree.items()
    }

def dump_tree(tree: Tree) -> str:
    return json.dumps(tree_to_json(tree), ensure_ascii=False, indent=2)

def export_json(tree: Tree, path: Union[str, Path]):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        f.write(dump_tree(tree))
        f.write("\n")

def load_corpus(path: Union[str, Path]) -> List[Prayer]:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"corpus not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        return parse_corpus(json.load(f))
