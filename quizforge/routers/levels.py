from fastapi import APIRouter, Depends
from loguru import logger

from ..auth import require_user
from ..schemas import LevelsRequest
from ..services.llm import GenerationClient, get_generation_client
from ..services.quiz_builder import generate_levels

router = APIRouter(tags=["generation"])


@router.post("/generate-levels")
async def generate_levels_route(
    req: LevelsRequest,
    user_id: str = Depends(require_user),
    client: GenerationClient = Depends(get_generation_client),
):
    logger.info(
        f"[quiz] generate-levels user={user_id} levels={req.level_types} "
        f"source_text={len(req.source_text or '')} chars"
    )
    payload = await generate_levels(req, client)
    return {"success": True, "data": payload.model_dump()}
