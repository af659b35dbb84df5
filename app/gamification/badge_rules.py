"""
Définition centralisée du catalogue de badges et de leurs conditions d'obtention.

Le catalogue est statique: seul l'identifiant d'un badge obtenu est persisté
(``user_badges``). Les conditions sont des fonctions pures de l'état
d'apprentissage; l'attribution est additive (un badge n'est jamais retiré).
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Dict, List, Sequence, Set

from app.models.user.user_model import SkillLevel


@dataclass(frozen=True)
class LearnerSnapshot:
    """Vue en lecture seule de l'état d'apprentissage évalué par les règles."""

    read_fiche_count: int
    quiz_scores: Sequence[float]
    skill_level: SkillLevel


@dataclass(frozen=True)
class BadgeDefinition:
    id: str
    name: str
    description: str
    # Nom d'icône react-icons/fi côté front
    icon: str
    condition: Callable[[LearnerSnapshot], bool]


FIRST_QUIZ = "premier-quiz"
AVID_READER = "lecteur-assidu"
PERFECT_SCORE = "score-parfait"
LEVEL_INTERMEDIATE = "niveau-intermediaire"
LEVEL_EXPERT = "niveau-expert"

AVID_READER_THRESHOLD = 3


BADGE_CATALOG: List[BadgeDefinition] = [
    BadgeDefinition(
        id=FIRST_QUIZ,
        name="Premier quiz",
        description="Vous avez terminé votre premier quiz.",
        icon="FiAward",
        condition=lambda s: len(s.quiz_scores) >= 1,
    ),
    BadgeDefinition(
        id=AVID_READER,
        name="Lecteur assidu",
        description=f"Vous avez lu au moins {AVID_READER_THRESHOLD} mémofiches.",
        icon="FiBookOpen",
        condition=lambda s: s.read_fiche_count >= AVID_READER_THRESHOLD,
    ),
    BadgeDefinition(
        id=PERFECT_SCORE,
        name="Score parfait",
        description="Vous avez obtenu 100 % à un quiz.",
        icon="FiStar",
        # Seul le dernier résultat compte
        condition=lambda s: bool(s.quiz_scores) and s.quiz_scores[-1] == 100,
    ),
    BadgeDefinition(
        id=LEVEL_INTERMEDIATE,
        name="Niveau Intermédiaire",
        description="Vous avez atteint le niveau Intermédiaire.",
        icon="FiTrendingUp",
        condition=lambda s: s.skill_level == SkillLevel.INTERMEDIAIRE,
    ),
    BadgeDefinition(
        id=LEVEL_EXPERT,
        name="Niveau Expert",
        description="Vous avez atteint le niveau Expert.",
        icon="FiZap",
        condition=lambda s: s.skill_level == SkillLevel.EXPERT,
    ),
]

BADGES_BY_ID: Dict[str, BadgeDefinition] = {badge.id: badge for badge in BADGE_CATALOG}


def newly_earned_badges(snapshot: LearnerSnapshot, owned: Set[str]) -> List[str]:
    """Badges dont la condition est remplie et qui ne sont pas encore possédés, dans l'ordre du catalogue."""
    return [
        badge.id
        for badge in BADGE_CATALOG
        if badge.id not in owned and badge.condition(snapshot)
    ]
