import asyncio
import json

import httpx
import pytest
from openai import APIConnectionError

from conftest import scripted_client
from quizforge.errors import GenerationFailed
from quizforge.schemas import LevelsRequest
from quizforge.services.llm import GenerationClient
from quizforge.services.mock_data import MOCK_BOX_QUESTIONS, mock_levels
from quizforge.services.prompts import SOURCE_END, SOURCE_START, bulk_user_prompt
from quizforge.services.quiz_builder import generate_levels, generate_questions, level_specs, parse_levels, validate_single
from quizforge.services.fallback import Failure, Ok

BOX_JSON = json.dumps({"questions": [{"text": f"Q{i}?", "answer": f"A{i}"} for i in range(1, 6)]})
BALLOON_JSON = json.dumps({
    "question": "Which are fruits?",
    "answers": [
        {"text": "Apple", "is_true": True},
        {"text": "Carrot", "is_true": False},
        {"text": "Banana", "is_true": True},
        {"text": "Potato", "is_true": False},
    ],
})


def box_level(n=1):
    return {"level_number": n, "level_type": "box", "questions": json.loads(BOX_JSON)["questions"]}


def balloon_level(n=1):
    return {"level_number": n, "level_type": "balloon", **json.loads(BALLOON_JSON)}


def levels_request(level_types, source_text=None):
    return LevelsRequest(
        course="Science",
        topic="Plants",
        gameNumber=3,
        numLevels=len(level_types),
        level_types=level_types,
        ai_prompt="photosynthesis basics",
        source_text=source_text,
    )


def connection_error():
    return APIConnectionError(request=httpx.Request("POST", "https://api.example.test"))


# ---------- single-question mode ----------

def test_box_answer_wrapped_in_fences_and_prose():
    raw = f"Sure! Here are your questions:\n```json\n{BOX_JSON}\n```\nEnjoy."
    outcome = validate_single(raw, "box")
    assert isinstance(outcome, Ok)
    assert [q["answer"] for q in outcome.value] == ["A1", "A2", "A3", "A4", "A5"]


def test_numeric_box_answers_become_strings():
    raw = json.dumps({"questions": [{"text": f"{i} + {i}?", "answer": i * 2} for i in range(1, 6)]})
    outcome = validate_single(raw, "box")
    assert outcome.value[0]["answer"] == "2"


@pytest.mark.parametrize(
    "raw, game_type",
    [
        ('{"items": []}', "box"),
        (json.dumps({"questions": [{"text": "Q?", "answer": "A"}] * 4}), "box"),
        ('{"answers": []}', "balloon"),
        (json.dumps({"question": "Q?", "answers": [{"text": "a", "is_true": False}]}), "balloon"),
        ("not json at all", "balloon"),
        ("[1, 2, 3]", "box"),
    ],
)
def test_wrong_shapes_are_rejected(raw, game_type):
    assert isinstance(validate_single(raw, game_type), Failure)


def test_unconfigured_client_gives_mock_questions():
    out = asyncio.run(generate_questions("addition", "box", GenerationClient(api_key="")))
    assert [q["answer"] for q in out] == ["4", "4", "4", "30", "15"]


def test_invalid_output_from_first_model_tries_next():
    client = scripted_client({"big": '{"nope": 1}', "small": BALLOON_JSON})
    out = asyncio.run(generate_questions("fruit", "balloon", client))
    assert out[0]["question"] == "Which are fruits?"
    assert client._client.chat.completions.calls == ["big", "small"]


def test_every_model_failing_falls_back_to_mock():
    client = scripted_client({"big": connection_error(), "small": "garbage"})
    out = asyncio.run(generate_questions("addition", "balloon", client))
    assert len(out) == 1
    assert out[0]["question"] == "What is 5 + 3?"
    assert [a["text"] for a in out[0]["answers"] if a["is_true"]] == ["8"]


def test_mock_data_is_stable_across_calls():
    first = asyncio.run(generate_questions("x", "box", GenerationClient(api_key="")))
    first[0]["answer"] = "tampered"
    second = asyncio.run(generate_questions("x", "box", GenerationClient(api_key="")))
    assert second == [dict(q) for q in MOCK_BOX_QUESTIONS]


# ---------- bulk mode ----------

def test_parse_levels_in_order():
    raw = json.dumps({"levels": [box_level(1), balloon_level(2)]})
    levels = parse_levels(raw, level_specs(["box", "balloon"]))
    assert [lv["level_type"] for lv in levels] == ["box", "balloon"]
    assert [lv["level_number"] for lv in levels] == [1, 2]
    assert levels[0]["level_stats"] == {"coins": 0, "lifes": 5, "mistakes": 0, "stars": 1, "time_spent": 0}


def test_level_numbers_come_from_position_and_stats_are_reseeded():
    first = {**box_level(7), "level_stats": {"coins": 99, "lifes": 0, "mistakes": 9, "stars": 3, "time_spent": 50}}
    second = {k: v for k, v in balloon_level().items() if k not in ("level_number", "level_type")}
    levels = parse_levels(json.dumps({"levels": [first, second]}), level_specs(["box", "balloon"]))
    assert [lv["level_number"] for lv in levels] == [1, 2]
    assert levels[0]["level_stats"]["coins"] == 0
    assert levels[1]["level_type"] == "balloon"


def test_wrong_level_count_is_reported():
    with pytest.raises(GenerationFailed) as exc:
        parse_levels(json.dumps({"levels": [box_level(1)]}), level_specs(["box", "balloon"]))
    assert exc.value.message == "The AI generated 1 instead of 2 levels. Please try again."
    assert exc.value.status_code == 502


def test_level_type_mismatch_is_reported():
    with pytest.raises(GenerationFailed) as exc:
        parse_levels(json.dumps({"levels": [balloon_level(1)]}), level_specs(["box"]))
    assert "should be 'box'" in exc.value.message


def test_malformed_box_level_is_reported():
    bad = {**box_level(1), "questions": box_level()["questions"][:3]}
    with pytest.raises(GenerationFailed) as exc:
        parse_levels(json.dumps({"levels": [bad]}), level_specs(["box"]))
    assert exc.value.message.startswith("Level 1 (box) is malformed")


def test_missing_levels_array_is_reported():
    with pytest.raises(GenerationFailed):
        parse_levels('{"questions": []}', level_specs(["box"]))


def test_bulk_wrong_shape_does_not_try_other_models():
    client = scripted_client({"big": json.dumps({"levels": [box_level(1)]}), "small": "unused"})
    with pytest.raises(GenerationFailed):
        asyncio.run(generate_levels(levels_request(["box", "balloon"]), client))
    assert client._client.chat.completions.calls == ["big"]


def test_bulk_transport_failure_moves_to_next_model():
    good = json.dumps({"levels": [box_level(1), balloon_level(2)]})
    client = scripted_client({"big": connection_error(), "small": good})
    payload = asyncio.run(generate_levels(levels_request(["box", "balloon"]), client))
    assert payload.numLevels == 2
    assert payload.course == "Science"
    assert payload.player_info.model_dump() == {"current_level": 1, "lives": 3, "score": 0}
    assert client._client.chat.completions.calls == ["big", "small"]


def test_bulk_upstream_exhausted_uses_mock_levels():
    client = scripted_client({"big": connection_error(), "small": connection_error()})
    payload = asyncio.run(generate_levels(levels_request(["balloon", "box", "balloon"]), client))
    assert [lv.level_type for lv in payload.levels] == ["balloon", "box", "balloon"]
    assert payload.model_dump()["levels"] == mock_levels(["balloon", "box", "balloon"])


def test_bulk_prompt_carries_source_text_only_when_given():
    specs = level_specs(["box", "balloon"])
    with_source = bulk_user_prompt("plants", specs, "Leaves make food from sunlight.")
    assert SOURCE_START in with_source and SOURCE_END in with_source
    assert "Leaves make food from sunlight." in with_source
    assert "- Level 2: balloon" in with_source

    without = bulk_user_prompt("plants", specs, "   ")
    assert SOURCE_START not in without
    assert "EXACTLY 2 levels" in without
