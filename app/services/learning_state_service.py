"""Historique d'apprentissage et état dérivé (niveau, badges) d'un utilisateur.

Chaque enregistrement verrouille la ligne de l'utilisateur avant de relire
son historique, ajoute l'entrée puis recalcule l'état dérivé dans la même
transaction: deux résultats de quiz concurrents ne peuvent pas recalculer sur
un historique périmé.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List

from sqlalchemy.orm import Session

from app.core.errors import NotFound
from app.crud import badge_crud, user_crud
from app.db.session import atomic
from app.gamification.badge_rules import LearnerSnapshot, newly_earned_badges
from app.gamification.skill_rules import next_skill_level
from app.models.progress.quiz_attempt_model import QuizAttempt
from app.models.progress.read_fiche_model import UserReadFiche
from app.models.user.user_model import SkillLevel, User

logger = logging.getLogger(__name__)


class LearningStateService:
    def __init__(self, db: Session, user_id: int):
        self.db = db
        self.user_id = user_id
        # Badges attribués pendant la durée de vie du service
        self.awarded: List[str] = []

    # -----------------------------
    # Enregistrements
    # -----------------------------
    def record_fiche_read(self, fiche_id: str) -> User:
        """Ajoute ``fiche_id`` aux fiches lues (idempotent) puis recalcule les badges."""
        with atomic(self.db):
            user = self._lock_user()
            if fiche_id not in user.read_fiche_ids:
                user.read_fiches.append(UserReadFiche(fiche_id=fiche_id))
                self.db.flush()
            self.recompute_badges(user)
        self.db.refresh(user)
        return user

    def record_quiz_result(self, quiz_id: str, score: float) -> User:
        """Ajoute toujours une nouvelle tentative, puis recalcule niveau et badges."""
        with atomic(self.db):
            user = self._lock_user()
            user.quiz_attempts.append(
                QuizAttempt(
                    quiz_id=quiz_id,
                    score=float(score),
                    completed_at=datetime.now(timezone.utc),
                )
            )
            self.db.flush()
            self.recompute_skill_level(user)
            self.recompute_badges(user)
        self.db.refresh(user)
        return user

    # -----------------------------
    # Recalculs (sans commit: appelés dans la transaction de l'enregistrement)
    # -----------------------------
    def recompute_skill_level(self, user: User) -> SkillLevel:
        scores = [attempt.score for attempt in user.quiz_attempts]
        target = next_skill_level(user.skill_level, scores)
        if target.rank > user.skill_level.rank:
            logger.info(
                "Utilisateur %s promu de %s à %s (%s quiz).",
                user.id,
                user.skill_level.value,
                target.value,
                len(scores),
            )
            user.skill_level = target
        return user.skill_level

    def recompute_badges(self, user: User) -> List[str]:
        snapshot = LearnerSnapshot(
            read_fiche_count=len(user.read_fiches),
            quiz_scores=[attempt.score for attempt in user.quiz_attempts],
            skill_level=user.skill_level,
        )
        owned = set(user.badges)
        new_badges = newly_earned_badges(snapshot, owned)
        if new_badges:
            badge_crud.add_user_badges(self.db, user.id, new_badges)
            self.db.flush()
            self.db.expire(user, ["user_badges"])
            self.awarded.extend(new_badges)
            for badge_id in new_badges:
                logger.info("Badge '%s' attribué à l'utilisateur %s.", badge_id, user.id)
        return new_badges

    def _lock_user(self) -> User:
        user = user_crud.get_user_for_update(self.db, self.user_id)
        if user is None:
            raise NotFound(f"Utilisateur {self.user_id} introuvable.")
        # Les historiques déjà chargés dans la session peuvent dater d'avant le verrou.
        self.db.expire(user, ["read_fiches", "quiz_attempts", "user_badges"])
        return user
