# src/ivy_planner/planner/classifier.py

"""
Keyword classifier: task description -> coarse category.

The category is the join key between tasks and learned statistics,
so the mapping must stay stable. Order matters: first match wins.
"""

from __future__ import annotations

DEFAULT_CATEGORY = "general"

CATEGORY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("communication", ("email", "message", "reply")),
    ("meeting", ("meeting", "call", "discuss")),
    ("writing", ("write", "document", "report")),
    ("development", ("code", "develop", "program")),
    ("review", ("review", "check", "analyze")),
    ("planning", ("plan", "organize", "prepare")),
    ("learning", ("learn", "study", "research")),
)

CATEGORIES: tuple[str, ...] = tuple(name for name, _ in CATEGORY_KEYWORDS) + (DEFAULT_CATEGORY,)


def classify(description: str) -> str:
    text = (description or "").lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(k in text for k in keywords):
            return category
    return DEFAULT_CATEGORY
