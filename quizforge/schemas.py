from __future__ import annotations

from typing import Annotated, List, Literal, Optional, Union
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .settings import settings

LevelType = Literal["box", "balloon"]

BOX_QUESTION_COUNT = 5
MAX_BALLOON_ANSWERS = 10


# ---------- quiz payload ----------

class LevelStats(BaseModel):
    """Seeded identically on every new level; gameplay fills it in later."""
    coins: int = 0
    lifes: int = 5
    mistakes: int = 0
    stars: int = 1
    time_spent: int = 0


class PlayerInfo(BaseModel):
    current_level: int = 1
    lives: int = 3
    score: int = 0


class BoxQuestion(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, coerce_numbers_to_str=True)

    text: str = Field(min_length=1)
    answer: str = Field(min_length=1)


class BalloonAnswer(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, coerce_numbers_to_str=True)

    text: str = Field(min_length=1)
    is_true: bool


class BoxQuestionSet(BaseModel):
    questions: List[BoxQuestion] = Field(min_length=BOX_QUESTION_COUNT, max_length=BOX_QUESTION_COUNT)


class BalloonQuestion(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    question: str = Field(min_length=1)
    answers: List[BalloonAnswer] = Field(min_length=1, max_length=MAX_BALLOON_ANSWERS)

    @field_validator("answers")
    @classmethod
    def _needs_a_true_answer(cls, answers: List[BalloonAnswer]) -> List[BalloonAnswer]:
        if not any(a.is_true for a in answers):
            raise ValueError("at least one answer must have is_true = true")
        return answers


class BoxLevel(BoxQuestionSet):
    level_number: int = Field(ge=1)
    level_type: Literal["box"] = "box"
    level_stats: LevelStats = Field(default_factory=LevelStats)


class BalloonLevel(BalloonQuestion):
    level_number: int = Field(ge=1)
    level_type: Literal["balloon"] = "balloon"
    level_stats: LevelStats = Field(default_factory=LevelStats)


Level = Annotated[Union[BoxLevel, BalloonLevel], Field(discriminator="level_type")]


class QuizPayload(BaseModel):
    course: str
    topic: str
    gameNumber: int
    numLevels: int
    levels: List[Level]
    player_info: PlayerInfo = Field(default_factory=PlayerInfo)

    @model_validator(mode="after")
    def _levels_match_count(self) -> "QuizPayload":
        if len(self.levels) != self.numLevels:
            raise ValueError(f"expected {self.numLevels} levels, got {len(self.levels)}")
        for position, level in enumerate(self.levels, start=1):
            if level.level_number != position:
                raise ValueError(f"level at position {position} has level_number {level.level_number}")
        return self


class StoredGame(QuizPayload):
    game_id: Optional[int] = None


# ---------- requests ----------

class QuestionRequest(BaseModel):
    prompt: str = Field(min_length=1, max_length=settings.MAX_PROMPT_LENGTH)
    game_type: LevelType
    level: int = Field(ge=1, le=10)


class LevelsRequest(BaseModel):
    course: str = Field(min_length=1)
    topic: str = Field(min_length=1)
    gameNumber: int
    numLevels: int = Field(ge=1, le=settings.MAX_BULK_LEVELS)
    level_types: List[LevelType]
    ai_prompt: str = Field(min_length=1, max_length=settings.MAX_PROMPT_LENGTH)
    source_text: Optional[str] = Field(default=None, max_length=settings.MAX_SOURCE_TEXT_LENGTH)

    @model_validator(mode="after")
    def _one_type_per_level(self) -> "LevelsRequest":
        if len(self.level_types) != self.numLevels:
            raise ValueError(
                f"level_types has {len(self.level_types)} entries but numLevels is {self.numLevels}"
            )
        return self


class UrlRequest(BaseModel):
    url: str = Field(min_length=1, max_length=settings.MAX_URL_LENGTH)

    @field_validator("url")
    @classmethod
    def _http_url(cls, value: str) -> str:
        value = value.strip()
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("Please enter a valid URL (including http:// or https://).")
        return value
