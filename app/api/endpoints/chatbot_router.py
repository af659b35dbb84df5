# Fichier: pharmia/backend/app/api/endpoints/chatbot_router.py

from fastapi import APIRouter, Depends

from app.api.dependencies import get_ai_provider, get_current_identity
from app.core.ai_service import GeminiProvider
from app.core.security import TokenIdentity
from app.schemas.coach import coach_schema
from app.services.chatbot_service import ChatbotService

router = APIRouter()


@router.post("/message", response_model=coach_schema.ChatbotMessageOut)
def send_message(
    payload: coach_schema.ChatbotMessageIn,
    identity: TokenIdentity = Depends(get_current_identity),
    provider: GeminiProvider = Depends(get_ai_provider),
):
    return {"response": ChatbotService(provider).answer(payload.message)}
