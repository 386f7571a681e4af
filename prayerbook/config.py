import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

PACKAGE_DIR = Path(__file__).resolve().parent

def _get(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return v if v is not None else default

@dataclass(frozen=True)
class Config:
    PRAYERS_JSON_PATH: str = _get("PRAYERS_JSON_PATH", "prayers.json")
    RULES_PATH: str = _get("RULES_PATH", str(PACKAGE_DIR / "rules.yml"))

    OUTPUT_JSON_PATH: str = _get("OUTPUT_JSON_PATH", "site/prayers-categorised.json")
    OUTPUT_HTML_PATH: str = _get("OUTPUT_HTML_PATH", "site/index.html")

    # normalized length from which a text skips the full rule scan
    LONG_TEXT_THRESHOLD: int = int(_get("LONG_TEXT_THRESHOLD", "11000"))

    PREVIEW_MAX_CHARS: int = int(_get("PREVIEW_MAX_CHARS", "200"))
    SITE_TITLE: str = _get("SITE_TITLE", "Prayers")

cfg = Config()
