"""Text helpers shared by chunking, embedding and scoring."""

from __future__ import annotations

import re
from typing import List

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_whitespace(text: str) -> str:
    """Collapse every whitespace run (newlines included) to one space and trim."""
    return _WHITESPACE_RE.sub(" ", text).strip()


def tokenize(text: str) -> List[str]:
    """Lowercase whitespace tokens, empty tokens dropped."""
    return text.lower().split()


def estimate_token_count(text: str) -> int:
    """Rough token count: whitespace-delimited non-empty pieces."""
    return len(text.split())


def build_snippet(text: str, *, max_chars: int = 220) -> str:
    if len(text) > max_chars:
        return text[:max_chars] + "…"
    return text
