"""Règles de progression du niveau de compétence.

Le niveau est un cliquet: au plus un palier gagné par évaluation, jamais de
rétrogradation. La moyenne porte sur tout l'historique de quiz.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from app.models.user.user_model import SkillLevel


@dataclass(frozen=True)
class Promotion:
    source: SkillLevel
    target: SkillLevel
    min_quizzes: int
    min_average: float


PROMOTIONS: List[Promotion] = [
    Promotion(SkillLevel.DEBUTANT, SkillLevel.INTERMEDIAIRE, min_quizzes=5, min_average=60.0),
    Promotion(SkillLevel.INTERMEDIAIRE, SkillLevel.EXPERT, min_quizzes=10, min_average=80.0),
]


def average_score(scores: Sequence[float]) -> float | None:
    if not scores:
        return None
    return sum(scores) / len(scores)


def next_skill_level(current: SkillLevel, scores: Sequence[float]) -> SkillLevel:
    """Applique la première promotion éligible depuis ``current`` et s'arrête."""
    avg = average_score(scores)
    if avg is None:
        return current

    for promotion in PROMOTIONS:
        if promotion.source != current:
            continue
        if len(scores) >= promotion.min_quizzes and avg >= promotion.min_average:
            return promotion.target
        break
    return current
