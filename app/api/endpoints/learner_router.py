# Fichier: pharmia/backend/app/api/endpoints/learner_router.py

import logging
from typing import Dict, List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.dependencies import get_current_identity, get_current_user, get_db
from app.core.permissions import capabilities
from app.core.security import TokenIdentity
from app.crud import badge_crud
from app.models.user.user_model import User
from app.schemas.user import user_schema
from app.schemas.user.badge_schema import BadgeWithStatus
from app.services.learning_state_service import LearningStateService

router = APIRouter()
logger = logging.getLogger(__name__)


def _learning_state(user: User, new_badges: List[str]) -> user_schema.LearningState:
    return user_schema.LearningState(
        skill_level=user.skill_level,
        read_fiche_ids=user.read_fiche_ids,
        quiz_history=[user_schema.QuizAttemptRead.model_validate(a) for a in user.quiz_attempts],
        badges=user.badges,
        new_badges=new_badges,
    )


@router.get("/learner-space", response_model=user_schema.User, summary="Profil et historique de l'utilisateur")
def read_learner_space(current_user: User = Depends(get_current_user)):
    return current_user


@router.get("/users/me/capabilities", response_model=Dict[str, bool])
def read_my_capabilities(identity: TokenIdentity = Depends(get_current_identity)):
    return capabilities(identity.role)


@router.post("/users/me/read-fiches", response_model=user_schema.LearningState)
def mark_fiche_read(
    payload: user_schema.ReadFicheIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = LearningStateService(db, current_user.id)
    user = service.record_fiche_read(payload.fiche_id)
    return _learning_state(user, service.awarded)


@router.post("/users/me/quiz-history", response_model=user_schema.LearningState)
def record_quiz_result(
    payload: user_schema.QuizResultIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = LearningStateService(db, current_user.id)
    user = service.record_quiz_result(payload.quiz_id, payload.score)
    return _learning_state(user, service.awarded)


@router.get("/badges", response_model=list[BadgeWithStatus], summary="Liste des badges et progression")
def list_badges(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return badge_crud.get_badges_with_status(db, current_user.id)
