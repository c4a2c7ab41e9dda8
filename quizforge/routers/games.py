from fastapi import APIRouter, Depends, HTTPException
from loguru import logger

from ..auth import require_user
from ..errors import PipelineError
from ..schemas import StoredGame
from ..services import db

router = APIRouter(tags=["games"])


@router.post("/game")
def save_game(game: StoredGame, user_id: str = Depends(require_user)):
    try:
        game_id = db.store_game(user_id=user_id, payload=game, game_id=game.game_id)
    except PipelineError:
        raise
    except Exception as e:
        logger.error(f"[game] store failed: {e}")
        raise HTTPException(500, f"Failed to store game: {e}")
    return {"message": "Game data stored successfully!", "game_id": game_id}


@router.get("/games")
def list_games(user_id: str = Depends(require_user)):
    try:
        games = db.list_games(user_id=user_id)
    except Exception as e:
        logger.error(f"[game] list failed: {e}")
        raise HTTPException(500, f"Failed to load games: {e}")
    return {"message": "Games selected successfully!", "data": games}


@router.get("/games/recent")
def recent_games(user_id: str = Depends(require_user)):
    try:
        games = db.recent_games(user_id=user_id)
    except Exception as e:
        logger.error(f"[game] recent failed: {e}")
        raise HTTPException(500, f"Failed to load games: {e}")
    return {"message": "Last created games fetched successfully!", "data": games}


@router.get("/games/{game_id}")
def get_game(game_id: int, user_id: str = Depends(require_user)):
    try:
        return db.get_game(game_id=game_id, user_id=user_id)
    except PipelineError:
        raise
    except Exception as e:
        logger.error(f"[game] load {game_id} failed: {e}")
        raise HTTPException(500, f"Failed to load game: {e}")


@router.delete("/games/{game_id}")
def delete_game(game_id: int, user_id: str = Depends(require_user)):
    try:
        db.delete_game(game_id=game_id, user_id=user_id)
    except PipelineError:
        raise
    except Exception as e:
        logger.error(f"[game] delete {game_id} failed: {e}")
        raise HTTPException(500, f"Failed to delete game: {e}")
    return {"message": "Game deleted successfully!", "game_id": game_id}
