# tests/test_classifier.py

from __future__ import annotations

import pytest

from ivy_planner.planner.classifier import CATEGORIES, DEFAULT_CATEGORY, classify


@pytest.mark.parametrize(
    ("description", "expected"),
    [
        ("Reply to Anna's EMAIL", "communication"),
        ("Team meeting prep", "meeting"),
        ("Write quarterly report", "writing"),
        ("Code the export feature", "development"),
        ("Review pull requests", "review"),
        ("Plan next sprint", "planning"),
        ("Study for the exam", "learning"),
        ("Buy groceries", DEFAULT_CATEGORY),
        ("", DEFAULT_CATEGORY),
    ],
)
def test_classify_keywords(description: str, expected: str) -> None:
    assert classify(description) == expected


def test_first_matching_category_wins() -> None:
    # "email" (communication) is checked before "write" (writing).
    assert classify("Write an email to the landlord") == "communication"


def test_classify_is_stable_and_known() -> None:
    text = "Prepare slides for the call"
    assert classify(text) == classify(text)
    assert classify(text) in CATEGORIES
