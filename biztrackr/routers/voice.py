"""
Voice entry router.
"""

from fastapi import APIRouter, Depends

from biztrackr.auth.dependencies import get_current_owner_id
from biztrackr.connectors import get_text_generator
from biztrackr.engine.voice import VoiceSaleParser
from biztrackr.models import VoiceSaleRequest

router = APIRouter()


@router.post("/parse-sale")
def parse_sale(
    request: VoiceSaleRequest,
    owner_id: str = Depends(get_current_owner_id),
    generator=Depends(get_text_generator),
):
    """Sale draft read from a transcript; nothing is recorded."""
    draft = VoiceSaleParser(generator).parse(request.transcript)
    return {"success": True, "data": draft.model_dump(mode="json")}
