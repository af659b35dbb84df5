"""Coach IA: construit un contexte assaini et valide la suggestion du fournisseur.

Le fournisseur ne reçoit jamais d'email ni de nom d'utilisateur: seulement le
niveau, les identifiants de fiches lues, les scores de quiz et un résumé du
catalogue. Sa réponse est vérifiée (forme, fiche existante, quiz présent)
avant d'être renvoyée; toute réponse inexploitable devient ``UpstreamError``.
"""

import logging
from typing import Dict, List, Optional, Protocol

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from app.core import prompt_manager
from app.core.errors import NotFound, ServiceUnavailable, UpstreamError
from app.crud import memofiche_crud, user_crud
from app.models.user.user_model import User
from app.schemas.coach.coach_schema import ChallengeSuggestion
from app.utils.json_utils import extract_json_object

logger = logging.getLogger(__name__)


class TextProvider(Protocol):
    @property
    def is_configured(self) -> bool: ...

    def generate(self, prompt: str, json_mode: bool = True) -> str: ...


class AICoachService:
    def __init__(self, db: Session, provider: TextProvider):
        self.db = db
        self.provider = provider

    def suggest_challenge(self, user_id: int, exclude_id: Optional[str] = None) -> ChallengeSuggestion:
        user = self._get_user(user_id)
        catalog = memofiche_crud.list_catalog_summary(self.db, exclude_id=exclude_id)
        profile = self.learner_profile(user)
        prompt = prompt_manager.get_prompt(
            "coach.suggest_challenge",
            ensure_json=True,
            catalog=catalog,
            **profile,
        )
        return self._ask(prompt, catalog, feature="suggest_challenge")

    def find_by_objective(self, user_id: int, objective: str) -> ChallengeSuggestion:
        user = self._get_user(user_id)
        catalog = memofiche_crud.list_catalog_summary(self.db)
        profile = self.learner_profile(user)
        prompt = prompt_manager.get_prompt(
            "coach.find_by_objective",
            ensure_json=True,
            objective=objective.strip(),
            catalog=catalog,
            skill_level=profile["skill_level"],
            read_fiche_ids=profile["read_fiche_ids"],
        )
        return self._ask(prompt, catalog, feature="find_by_objective")

    @staticmethod
    def learner_profile(user: User) -> Dict[str, object]:
        """Vue assainie de l'état d'apprentissage envoyée au fournisseur."""
        return {
            "skill_level": user.skill_level.value,
            "read_fiche_ids": sorted(user.read_fiche_ids),
            "quiz_history": [
                {"quizId": attempt.quiz_id, "score": attempt.score}
                for attempt in user.quiz_attempts
            ],
        }

    # -----------------------------
    # Internes
    # -----------------------------
    def _get_user(self, user_id: int) -> User:
        user = user_crud.get_user(self.db, user_id)
        if user is None:
            raise NotFound(f"Utilisateur {user_id} introuvable.")
        return user

    def _ask(self, prompt: str, catalog: List[dict], feature: str) -> ChallengeSuggestion:
        if not self.provider.is_configured:
            raise ServiceUnavailable("Le service IA n'est pas configuré (clé API Google absente).")
        if not catalog:
            raise NotFound("Aucune mémofiche disponible pour le coach IA.")

        raw = self.provider.generate(prompt)
        try:
            suggestion = ChallengeSuggestion.model_validate(extract_json_object(raw))
        except (ValueError, PydanticValidationError) as exc:
            logger.error("[%s] Réponse du coach IA non conforme: %s", feature, type(exc).__name__)
            raise UpstreamError("Le coach IA a renvoyé une réponse invalide.") from exc

        entry = next((item for item in catalog if item["id"] == suggestion.fiche_id), None)
        if entry is None:
            logger.error("[%s] Le coach IA a proposé une fiche inconnue: %s", feature, suggestion.fiche_id)
            raise UpstreamError("Le coach IA a proposé une mémofiche inexistante.")
        if suggestion.type == "quiz" and not entry["hasQuiz"]:
            logger.error("[%s] Le coach IA a proposé un quiz absent: %s", feature, suggestion.fiche_id)
            raise UpstreamError("Le coach IA a proposé un quiz inexistant.")

        # Le titre affiché est celui du catalogue, pas celui recopié par le modèle.
        suggestion.title = entry["title"]
        logger.info("[%s] Suggestion %s pour la fiche %s.", feature, suggestion.type, suggestion.fiche_id)
        return suggestion
