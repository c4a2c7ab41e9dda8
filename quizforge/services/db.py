"""Persistence collaborator: game -> levels -> box questions / balloon answers.

The generation pipeline never calls this; the /game routes hand it a finished
QuizPayload once the teacher has reviewed it, and read games back for editing
and play.

Tables (primary key first): games(game_id), levels(level_id, game_id),
box_question_answer(id, level_id), balloon_type(balloon_id, level_id),
balloon_answer(id, balloon_id). Child rows cascade on delete.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from loguru import logger
from supabase import create_client, Client

from ..errors import GameNotFound
from ..schemas import Level, LevelStats, PlayerInfo, QuizPayload
from ..settings import settings


_supabase: Client | None = None

GAME_NOT_FOUND_MESSAGE = "Game not found."
RECENT_GAMES_LIMIT = 6


# ------------------------------------------------
# Supabase Client
# ------------------------------------------------

def supabase() -> Client:
    global _supabase
    if _supabase is None:
        if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_ROLE_KEY:
            raise RuntimeError("Supabase is not configured.")
        _supabase = create_client(
            settings.SUPABASE_URL,
            settings.SUPABASE_SERVICE_ROLE_KEY,
        )
    return _supabase


# ------------------------------------------------
# Games: write
# ------------------------------------------------

def store_game(*, user_id: str, payload: QuizPayload, game_id: Optional[int] = None) -> int:
    """Create a game, or replace the levels of one the caller owns. Returns the game_id.

    New levels are written before anything old is removed; if any insert fails,
    the rows written so far are deleted again and the stored game is unchanged.
    The notification is sent only once the game is complete.
    """
    sb = supabase()

    row: dict[str, Any] = {
        "course": payload.course,
        "topic": payload.topic,
        "game_number": payload.gameNumber,
        "number_of_levels": payload.numLevels,
        "user_id": user_id,
    }

    if game_id:
        _owned_game(sb, game_id, user_id)
        old_level_ids = [
            r["level_id"]
            for r in sb.table("levels").select("level_id").eq("game_id", game_id).execute().data or []
        ]

        _insert_levels(sb, game_id, payload.levels)
        if old_level_ids:
            sb.table("levels").delete().in_("level_id", old_level_ids).execute()
        sb.table("games").update(row).eq("game_id", game_id).eq("user_id", user_id).execute()

        logger.info(f"[db] game {game_id} updated ({len(payload.levels)} levels)")
        _notify(user_id, "info", "Game Updated", f"Your game '{payload.topic}' has been successfully updated.")
    else:
        res = sb.table("games").insert(row).execute()
        game_id = res.data[0]["game_id"]
        try:
            _insert_levels(sb, game_id, payload.levels)
        except Exception:
            sb.table("games").delete().eq("game_id", game_id).execute()
            raise

        logger.info(f"[db] game {game_id} created ({len(payload.levels)} levels)")
        _notify(user_id, "success", "New Game Created", f"You have successfully created a new game '{payload.topic}'.")

    return int(game_id)


def delete_game(*, game_id: int, user_id: str) -> None:
    res = supabase().table("games").delete().eq("game_id", game_id).eq("user_id", user_id).execute()
    if not res.data:
        raise GameNotFound(GAME_NOT_FOUND_MESSAGE)
    logger.info(f"[db] game {game_id} deleted")


# ------------------------------------------------
# Games: read
# ------------------------------------------------

def list_games(*, user_id: str) -> List[Dict[str, Any]]:
    res = supabase().table("games").select("*").eq("user_id", user_id).order("game_id").execute()
    return res.data or []


def recent_games(*, user_id: str, limit: int = RECENT_GAMES_LIMIT) -> List[Dict[str, Any]]:
    """Newest games first, as dashboard cards."""
    res = (
        supabase()
        .table("games")
        .select("game_id, course, topic, game_number, number_of_levels, created_at")
        .eq("user_id", user_id)
        .order("created_at", desc=True)
        .limit(limit)
        .execute()
    )
    return [
        {
            "quiz_id": g["game_id"],
            "timestamp": g.get("created_at"),
            "title": f"{g['course']} - {g['topic']} - Game #{g['game_number']}",
            "number_of_levels": g["number_of_levels"],
        }
        for g in res.data or []
    ]


def get_game(*, game_id: int, user_id: str) -> Dict[str, Any]:
    """Rebuild the full quiz payload of a game the caller owns."""
    sb = supabase()
    game = _owned_game(sb, game_id, user_id)

    levels = (
        sb.table("levels").select("*").eq("game_id", game_id).order("level_number").execute().data or []
    )
    level_ids = [lv["level_id"] for lv in levels]

    box_rows: Dict[int, List[dict]] = {}
    balloon_rows: Dict[int, dict] = {}
    answer_rows: Dict[int, List[dict]] = {}
    if level_ids:
        for q in sb.table("box_question_answer").select("*").in_("level_id", level_ids).order("id").execute().data or []:
            box_rows.setdefault(q["level_id"], []).append(q)
        for b in sb.table("balloon_type").select("*").in_("level_id", level_ids).execute().data or []:
            balloon_rows.setdefault(b["level_id"], b)
    balloon_ids = [b["balloon_id"] for b in balloon_rows.values()]
    if balloon_ids:
        for a in sb.table("balloon_answer").select("*").in_("balloon_id", balloon_ids).order("id").execute().data or []:
            answer_rows.setdefault(a["balloon_id"], []).append(a)

    out_levels = []
    for lv in levels:
        level: Dict[str, Any] = {
            "level_number": lv["level_number"],
            "level_type": lv["level_type"],
            "level_stats": LevelStats().model_dump(),
        }
        if lv["level_type"] == "box":
            level["questions"] = [
                {"text": q["question_text"], "answer": q["answer_text"]} for q in box_rows.get(lv["level_id"], [])
            ]
        else:
            balloon = balloon_rows.get(lv["level_id"])
            level["question"] = balloon["question_text"] if balloon else None
            level["answers"] = [
                {"text": a["answer_text"], "is_true": bool(a["is_correct"])}
                for a in (answer_rows.get(balloon["balloon_id"], []) if balloon else [])
            ]
        out_levels.append(level)

    return {
        "game_id": game["game_id"],
        "course": game["course"],
        "topic": game["topic"],
        "gameNumber": game["game_number"],
        "numLevels": game["number_of_levels"],
        "levels": out_levels,
        "player_info": PlayerInfo().model_dump(),
    }


# ------------------------------------------------
# Helpers
# ------------------------------------------------

def _owned_game(sb: Client, game_id: int, user_id: str) -> Dict[str, Any]:
    check = (
        sb.table("games")
        .select("*")
        .eq("game_id", game_id)
        .eq("user_id", user_id)
        .maybe_single()
        .execute()
    )
    # maybe_single() answers None rather than an empty result on some client versions
    if check is None or not check.data:
        raise GameNotFound(GAME_NOT_FOUND_MESSAGE)
    return check.data


def _insert_levels(sb: Client, game_id: int, levels: Sequence[Level]) -> None:
    created: List[int] = []
    try:
        for level in levels:
            lvl = (
                sb.table("levels")
                .insert({"game_id": game_id, "level_number": level.level_number, "level_type": level.level_type})
                .execute()
            )
            level_id = lvl.data[0]["level_id"]
            created.append(level_id)

            if level.level_type == "box":
                sb.table("box_question_answer").insert(
                    [{"level_id": level_id, "question_text": q.text, "answer_text": q.answer} for q in level.questions]
                ).execute()
            else:
                balloon = (
                    sb.table("balloon_type")
                    .insert({"level_id": level_id, "question_text": level.question})
                    .execute()
                )
                balloon_id = balloon.data[0]["balloon_id"]
                sb.table("balloon_answer").insert(
                    [{"balloon_id": balloon_id, "answer_text": a.text, "is_correct": a.is_true} for a in level.answers]
                ).execute()
    except Exception as e:
        logger.error(f"[db] level insert failed for game {game_id}, removing {len(created)} new level(s): {e}")
        if created:
            sb.table("levels").delete().in_("level_id", created).execute()
        raise


def _notify(user_id: str, kind: str, title: str, message: str) -> None:
    # the game is already stored; a lost notification is not a failed save
    try:
        supabase().table("notifications").insert(
            {"user_id": user_id, "type": kind, "title": title, "message": message, "read": False}
        ).execute()
    except Exception as e:
        logger.warning(f"[db] notification not sent: {e}")
