from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Optional, Sequence

from ..settings import settings


@dataclass(frozen=True)
class LevelSpec:
    level_number: int
    type: str


# --------------------------------------------------
# SINGLE-QUESTION MODE
# --------------------------------------------------

SINGLE_SYSTEM_PROMPT = (
    "You are an educational question generator for teachers. "
    "Respond with ONLY valid JSON. No markdown, no code fences, no extra text."
)


def box_instruction(prompt: str) -> str:
    return (
        "Generate exactly 5 different, clear, and educational questions with their correct answers about: "
        f"{prompt}. Make questions progressively challenging and directly related to the topic. "
        "Answers must be short (a word, a number or a short phrase). "
        "Return ONLY valid JSON with no markdown, no extra text. "
        'Format: {"questions": [{"text": "Question?", "answer": "Answer"}, ...]}'
    )


def balloon_instruction(prompt: str) -> str:
    return (
        "Generate 1 challenging question with exactly 4 different multiple choice answers "
        f"(only 1 correct) about: {prompt}. "
        "The correct answer and wrong answers should be clearly differentiated. "
        "Return ONLY valid JSON with no markdown, no extra text. "
        'Format: {"question": "Question?", "answers": [{"text": "Option", "is_true": true}, '
        '{"text": "Option", "is_true": false}, ...]}'
    )


def single_instruction(prompt: str, game_type: str) -> str:
    return box_instruction(prompt) if game_type == "box" else balloon_instruction(prompt)


# --------------------------------------------------
# BULK MODE
# --------------------------------------------------

SOURCE_START = "=== SOURCE TEXT START ==="
SOURCE_END = "=== SOURCE TEXT END ==="

EXAMPLE_LEVELS = {
    "levels": [
        {
            "level_number": 1,
            "level_type": "box",
            "questions": [
                {"text": "How many legs does a spider have?", "answer": "8"},
                {"text": "What do bees make?", "answer": "Honey"},
                {"text": "Which animal is called the ship of the desert?", "answer": "Camel"},
                {"text": "What do caterpillars turn into?", "answer": "Butterflies"},
                {"text": "How many wings does a bird have?", "answer": "2"},
            ],
        },
        {
            "level_number": 2,
            "level_type": "balloon",
            "question": "Which of these animals are mammals?",
            "answers": [
                {"text": "Cow", "is_true": True},
                {"text": "Eagle", "is_true": False},
                {"text": "Dolphin", "is_true": True},
                {"text": "Lizard", "is_true": False},
                {"text": "Goat", "is_true": True},
                {"text": "Frog", "is_true": False},
            ],
        },
    ]
}


def bulk_system_prompt() -> str:
    return f"""You are an experienced primary school teacher in {settings.CONTENT_REGION} who writes quiz questions for children aged 6 to 12.

Rules:
- Use simple vocabulary and short sentences a primary school pupil understands.
- Use names, places, food, money and everyday situations familiar to children in {settings.CONTENT_REGION}.
- Every answer must be factually correct.
- Return ONLY valid JSON. No markdown, no code fences, no comments.
"""


def bulk_user_prompt(ai_prompt: str, levels: Sequence[LevelSpec], source_text: Optional[str] = None) -> str:
    n = len(levels)
    parts = []

    if source_text and source_text.strip():
        parts.append(
            "The teacher provided the course material below. Every question MUST be based on the "
            "concepts, facts and examples contained in this text and nowhere else.\n"
            "Do NOT ask about the title, the author, the channel, the video, the document or the page itself. "
            "Ask about what the text teaches.\n\n"
            f"{SOURCE_START}\n{source_text.strip()}\n{SOURCE_END}"
        )

    parts.append(f"Teacher request: {ai_prompt.strip()}")

    level_lines = "\n".join(f"- Level {spec.level_number}: {spec.type}" for spec in levels)
    parts.append(f"Generate EXACTLY {n} level{'s' if n != 1 else ''}, in this order, with these types:\n{level_lines}")

    parts.append(
        "Level formats:\n"
        '- "box": exactly 5 questions, each {"text": "...", "answer": "..."} with a short answer.\n'
        '- "balloon": one "question" and between 4 and 10 "answers", each {"text": "...", "is_true": true|false}; '
        "at least one answer must be true."
    )

    parts.append(
        f"Difficulty must increase progressively: level 1 is the easiest, level {n} is the hardest."
    )

    parts.append(
        'Return a JSON object with a single key "levels" whose array has exactly '
        f"{n} item{'s' if n != 1 else ''}. Example covering both level types:\n"
        + json.dumps(EXAMPLE_LEVELS, ensure_ascii=False, indent=2)
    )

    return "\n\n".join(parts)
