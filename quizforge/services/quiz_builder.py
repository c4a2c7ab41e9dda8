"""quizforge/services/quiz_builder.py

Prompt -> model -> validated quiz content.

Single-question mode drives the model list itself: a model whose answer does
not parse or lacks the expected shape counts as failed and the next model is
tried; mock data closes the chain.

Bulk mode asks for every level in one call. Only transport failures move on to
the next model. A model that answers 200 with the wrong level count or a
malformed level is reported to the caller as GenerationFailed, since padding or
trimming would break the caller's level indexing.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from loguru import logger
from pydantic import ValidationError

from ..errors import GenerationFailed
from ..schemas import (
    BalloonLevel,
    BalloonQuestion,
    BoxLevel,
    BoxQuestionSet,
    LevelsRequest,
    PlayerInfo,
    QuizPayload,
)
from .fallback import Failure, Ok
from .json_utils import parse_model_json
from .llm import GenerationClient
from .mock_data import mock_levels, mock_questions
from .prompts import LevelSpec, SINGLE_SYSTEM_PROMPT, bulk_system_prompt, bulk_user_prompt, single_instruction


# --------------------------------------------------
# SINGLE-QUESTION MODE
# --------------------------------------------------

def validate_single(raw: Optional[str], game_type: str):
    data = parse_model_json(raw)
    if not isinstance(data, dict):
        return Failure("response is not a JSON object")

    try:
        if game_type == "box":
            if "questions" not in data:
                return Failure("missing 'questions' key")
            return Ok(BoxQuestionSet.model_validate(data).model_dump()["questions"])

        if "question" not in data:
            return Failure("missing 'question' key")
        return Ok([BalloonQuestion.model_validate(data).model_dump()])
    except ValidationError as e:
        return Failure(f"shape mismatch: {e.error_count()} error(s)")


async def generate_questions(prompt: str, game_type: str, client: GenerationClient) -> List[Dict[str, Any]]:
    if not client.configured:
        logger.info("[quiz] no model API key configured")
        return mock_questions(game_type)

    user = single_instruction(prompt, game_type)
    for model in client.models:
        raw = await client.complete(model, SINGLE_SYSTEM_PROMPT, user, max_tokens=1500)
        if raw is None:
            continue
        outcome = validate_single(raw, game_type)
        if isinstance(outcome, Ok):
            logger.info(f"[quiz] {game_type} questions from model={model}")
            return outcome.value
        logger.warning(f"[quiz] model={model} output rejected: {outcome.reason}")

    logger.warning(f"[quiz] every model failed for {game_type}, falling back to mock data")
    return mock_questions(game_type)


# --------------------------------------------------
# BULK MODE
# --------------------------------------------------

def level_specs(level_types: Sequence[str]) -> List[LevelSpec]:
    return [LevelSpec(level_number=n, type=t) for n, t in enumerate(level_types, start=1)]


def parse_levels(raw: str, specs: Sequence[LevelSpec]) -> List[Dict[str, Any]]:
    """Strict check of a bulk answer against the requested level list."""
    data = parse_model_json(raw)
    levels = data.get("levels") if isinstance(data, dict) else None
    if not isinstance(levels, list):
        raise GenerationFailed("The AI response was not valid quiz JSON (no 'levels' array). Please try again.")

    if len(levels) != len(specs):
        raise GenerationFailed(
            f"The AI generated {len(levels)} instead of {len(specs)} levels. Please try again."
        )

    out = []
    for spec, item in zip(specs, levels):
        if not isinstance(item, dict):
            raise GenerationFailed(f"Level {spec.level_number} is not a JSON object.")

        returned_type = item.get("level_type", spec.type)
        if returned_type != spec.type:
            raise GenerationFailed(
                f"Level {spec.level_number} should be '{spec.type}' but the AI returned '{returned_type}'."
            )

        # position decides the number; stats are always freshly seeded
        fields = {k: v for k, v in item.items() if k not in ("level_number", "level_type", "level_stats")}
        model = BoxLevel if spec.type == "box" else BalloonLevel
        try:
            level = model.model_validate({**fields, "level_number": spec.level_number})
        except ValidationError as e:
            first = e.errors()[0]
            where = ".".join(str(p) for p in first.get("loc", ()))
            raise GenerationFailed(
                f"Level {spec.level_number} ({spec.type}) is malformed: {where} {first.get('msg', '')}".strip()
            ) from e
        out.append(level.model_dump())
    return out


async def generate_levels(req: LevelsRequest, client: GenerationClient) -> QuizPayload:
    specs = level_specs(req.level_types)

    if not client.configured:
        logger.info("[quiz] no model API key configured, bulk mock levels")
        levels = mock_levels(req.level_types)
    else:
        raw = await client.generate(
            bulk_system_prompt(),
            bulk_user_prompt(req.ai_prompt, specs, req.source_text),
        )
        if raw is None:
            logger.warning("[quiz] bulk generation: upstream exhausted, using mock levels")
            levels = mock_levels(req.level_types)
        else:
            levels = parse_levels(raw, specs)

    logger.info(f"[quiz] assembled {len(levels)} level(s) for '{req.topic}'")
    return QuizPayload(
        course=req.course,
        topic=req.topic,
        gameNumber=req.gameNumber,
        numLevels=req.numLevels,
        levels=levels,
        player_info=PlayerInfo(),
    )
