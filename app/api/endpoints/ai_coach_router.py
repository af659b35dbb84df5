# Fichier: pharmia/backend/app/api/endpoints/ai_coach_router.py

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.dependencies import get_ai_provider, get_current_user, get_db
from app.core.ai_service import GeminiProvider
from app.models.user.user_model import User
from app.schemas.coach import coach_schema
from app.services.ai_coach_service import AICoachService

router = APIRouter()


@router.post("/suggest-challenge", response_model=coach_schema.ChallengeSuggestion)
def suggest_challenge(
    payload: coach_schema.SuggestChallengeIn | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    provider: GeminiProvider = Depends(get_ai_provider),
):
    exclude_id = payload.exclude_id if payload else None
    return AICoachService(db, provider).suggest_challenge(current_user.id, exclude_id=exclude_id)


@router.post("/find-by-objective", response_model=coach_schema.ChallengeSuggestion)
def find_by_objective(
    payload: coach_schema.FindByObjectiveIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    provider: GeminiProvider = Depends(get_ai_provider),
):
    return AICoachService(db, provider).find_by_objective(current_user.id, payload.objective)
