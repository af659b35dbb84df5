"""Déclare l'ensemble des modèles SQLAlchemy pour la création du schéma."""

from app.db.base_class import Base

# Utilisateurs et badges
from app.models.user.user_model import User
from app.models.user.badge_model import UserBadge

# Historique d'apprentissage
from app.models.progress.read_fiche_model import UserReadFiche
from app.models.progress.quiz_attempt_model import QuizAttempt

# Catalogue
from app.models.content.taxonomy_model import Theme, SystemeOrgane
from app.models.content.memofiche_model import MemoFiche

__all__ = (
    "Base",
    "User",
    "UserBadge",
    "UserReadFiche",
    "QuizAttempt",
    "Theme",
    "SystemeOrgane",
    "MemoFiche",
)
