"""
Law Catalog

Static list of Dominican codes and laws with links to their full text,
shipped as package data in legalai/data/laws.json.
"""
import json
from functools import lru_cache
from pathlib import Path
from typing import Optional

LAWS_PATH = Path(__file__).resolve().parents[1] / "data" / "laws.json"


@lru_cache(maxsize=1)
def load_laws() -> tuple[dict, ...]:
    with open(LAWS_PATH, encoding="utf-8") as f:
        return tuple(json.load(f))


def search_laws(q: Optional[str] = None) -> list[dict]:
    """Case-insensitive substring match on title or description; empty query returns all."""
    laws = load_laws()
    needle = (q or "").strip().lower()
    if not needle:
        return list(laws)
    return [
        law for law in laws
        if needle in law["title"].lower() or needle in law["description"].lower()
    ]
