from fastapi import APIRouter, Depends
from loguru import logger

from ..auth import require_user
from ..schemas import QuestionRequest
from ..services.llm import GenerationClient, get_generation_client
from ..services.quiz_builder import generate_questions

router = APIRouter(tags=["generation"])


@router.post("/generate-questions")
async def generate_questions_route(
    req: QuestionRequest,
    user_id: str = Depends(require_user),
    client: GenerationClient = Depends(get_generation_client),
):
    """One game type, one prompt: 5 box questions or a single balloon question."""
    logger.info(f"[quiz] generate-questions user={user_id} type={req.game_type} level={req.level}")
    questions = await generate_questions(req.prompt, req.game_type, client)
    return {
        "success": True,
        "questions": questions,
        "message": "Questions generated successfully",
    }
