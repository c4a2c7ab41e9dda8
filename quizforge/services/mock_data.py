"""Fixed sample content used when no model key is configured or every model failed.

No randomness: identical input always yields identical output.
"""

from __future__ import annotations

from typing import Any, Dict, List, Sequence

from loguru import logger

from ..schemas import LevelStats

MOCK_BOX_QUESTIONS = (
    {"text": "What is 2 + 2?", "answer": "4"},
    {"text": "What is the square root of 16?", "answer": "4"},
    {"text": "Solve for x: 2x + 5 = 13", "answer": "4"},
    {"text": "What is 10 × 3?", "answer": "30"},
    {"text": "What is the area of a rectangle with length 5 and width 3?", "answer": "15"},
)

MOCK_BALLOON_QUESTION = {
    "question": "What is 5 + 3?",
    "answers": (
        {"text": "6", "is_true": False},
        {"text": "7", "is_true": False},
        {"text": "8", "is_true": True},
        {"text": "9", "is_true": False},
        {"text": "10", "is_true": False},
        {"text": "11", "is_true": False},
        {"text": "12", "is_true": False},
        {"text": "13", "is_true": False},
        {"text": "14", "is_true": False},
        {"text": "15", "is_true": False},
    ),
}


def mock_box_questions() -> List[Dict[str, str]]:
    logger.info("[quiz] using mock data (box)")
    return [dict(q) for q in MOCK_BOX_QUESTIONS]


def mock_balloon_question() -> Dict[str, Any]:
    logger.info("[quiz] using mock data (balloon)")
    return {
        "question": MOCK_BALLOON_QUESTION["question"],
        "answers": [dict(a) for a in MOCK_BALLOON_QUESTION["answers"]],
    }


def mock_questions(game_type: str) -> List[Dict[str, Any]]:
    """Single-question mode shape: box -> 5 questions, balloon -> [one question]."""
    if game_type == "box":
        return mock_box_questions()
    return [mock_balloon_question()]


def mock_level(level_number: int, level_type: str) -> Dict[str, Any]:
    level: Dict[str, Any] = {
        "level_number": level_number,
        "level_type": level_type,
        "level_stats": LevelStats().model_dump(),
    }
    if level_type == "box":
        level["questions"] = mock_box_questions()
    else:
        level.update(mock_balloon_question())
    return level


def mock_levels(level_types: Sequence[str]) -> List[Dict[str, Any]]:
    return [mock_level(n, t) for n, t in enumerate(level_types, start=1)]
