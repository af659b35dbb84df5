# Fichier: pharmia/backend/app/api/api.py
from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from .endpoints import (
    admin_router,
    ai_coach_router,
    auth_router,
    chatbot_router,
    learner_router,
    memofiche_router,
)

api_router = APIRouter()


@api_router.get("/health", response_class=PlainTextResponse, tags=["Health"])
def health() -> str:
    return "OK"


api_router.include_router(auth_router.router, tags=["Auth"])
api_router.include_router(memofiche_router.router, tags=["MemoFiches"])
api_router.include_router(learner_router.router, tags=["Learner"])
api_router.include_router(ai_coach_router.router, prefix="/ai-coach", tags=["AI Coach"])
api_router.include_router(chatbot_router.router, prefix="/chatbot", tags=["Chatbot"])
api_router.include_router(admin_router.router, tags=["Admin"])
