"""
AI insights and BizBot chat router.

Both endpoints call a blocking LLM client, so they are plain ``def``
handlers and run in FastAPI's threadpool.
"""

from fastapi import APIRouter, Depends

from biztrackr.auth.dependencies import get_current_owner_id
from biztrackr.config import Settings, get_settings
from biztrackr.connectors import get_text_generator
from biztrackr.engine.insights import InsightsService
from biztrackr.models import ChatRequest
from biztrackr.storage import StorageBackend, get_storage
from biztrackr.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


def get_insights_service(
    storage: StorageBackend = Depends(get_storage),
    generator=Depends(get_text_generator),
    settings: Settings = Depends(get_settings),
) -> InsightsService:
    return InsightsService(storage, generator=generator, settings=settings)


@router.post("/insights")
def generate_insights(
    owner_id: str = Depends(get_current_owner_id),
    service: InsightsService = Depends(get_insights_service),
):
    """
    Business analysis report.

    Falls back to a locally generated report (``source: "fallback"``) when
    the model is unavailable.
    """
    report = service.generate_report(owner_id)
    logger.info("insights_generated", owner_id=owner_id, source=report.source)
    return {"success": True, "data": report.model_dump(mode="json")}


@router.post("/chatbot")
def chat(
    request: ChatRequest,
    owner_id: str = Depends(get_current_owner_id),
    service: InsightsService = Depends(get_insights_service),
):
    """Short conversational answer grounded in the owner's dashboard figures."""
    reply = service.chat(owner_id, request.message)
    return {"success": True, "data": reply.model_dump(mode="json")}
