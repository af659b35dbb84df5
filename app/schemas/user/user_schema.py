# Fichier: pharmia/backend/app/schemas/user/user_schema.py
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Dict, List, Optional
from datetime import datetime

from app.models.user.user_model import SkillLevel, SubscriptionStatus, UserRole


def _parse_role(value):
    if value is None:
        return value
    return UserRole.parse(value)


def _check_username(value):
    # Un "@" rendrait la connexion par identifiant ambiguë avec un email.
    if value is None:
        return value
    value = value.strip()
    if "@" in value:
        raise ValueError("Le nom d'utilisateur ne peut pas contenir '@'")
    return value


# --- Inscription ---
class UserRegister(BaseModel):
    email: EmailStr
    username: str = Field(min_length=3, max_length=50)
    password: str = Field(min_length=6, max_length=128)
    role: UserRole
    pharmacien_responsable_id: Optional[int] = Field(default=None, alias="pharmacienResponsableId")

    class Config:
        populate_by_name = True

    @field_validator("role", mode="before")
    @classmethod
    def _normalize_role(cls, value):
        return _parse_role(value)

    @field_validator("username")
    @classmethod
    def _strip_username(cls, value: str) -> str:
        return _check_username(value)


# --- Connexion ---
# ``identifier`` accepte l'email OU le nom d'utilisateur.
class LoginRequest(BaseModel):
    identifier: str = Field(min_length=1)
    password: str = Field(min_length=1)


class LoginResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    role: UserRole
    username: str
    capabilities: Dict[str, bool]


class QuizAttemptRead(BaseModel):
    quiz_id: str = Field(alias="quizId")
    score: float
    completed_at: datetime = Field(alias="completedAt")

    class Config:
        from_attributes = True
        populate_by_name = True


# --- Réponse de l'API ---
# Note : Il n'y a PAS de mot de passe ici pour des raisons de sécurité.
class User(BaseModel):
    id: int
    email: EmailStr
    username: str
    role: UserRole
    pharmacien_responsable_id: Optional[int] = Field(default=None, alias="pharmacienResponsableId")
    skill_level: SkillLevel = Field(alias="skillLevel")
    subscription_status: SubscriptionStatus = Field(default=SubscriptionStatus.FREE, alias="subscriptionStatus")
    read_fiche_ids: List[str] = Field(default_factory=list, alias="readFicheIds")
    quiz_history: List[QuizAttemptRead] = Field(default_factory=list, alias="quizHistory")
    badges: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    last_login_at: Optional[datetime] = Field(default=None, alias="lastLogin")

    class Config:
        from_attributes = True
        populate_by_name = True


# --- Historique d'apprentissage ---
class ReadFicheIn(BaseModel):
    fiche_id: str = Field(alias="ficheId", min_length=1, max_length=64)

    class Config:
        populate_by_name = True


class QuizResultIn(BaseModel):
    quiz_id: str = Field(alias="quizId", min_length=1, max_length=64)
    score: float = Field(ge=0, le=100)

    class Config:
        populate_by_name = True


class LearningState(BaseModel):
    skill_level: SkillLevel = Field(alias="skillLevel")
    read_fiche_ids: List[str] = Field(alias="readFicheIds")
    quiz_history: List[QuizAttemptRead] = Field(alias="quizHistory")
    badges: List[str]
    new_badges: List[str] = Field(default_factory=list, alias="newBadges")

    class Config:
        populate_by_name = True


# --- Administration ---
class AdminUserUpdate(BaseModel):
    """Champs modifiables par un administrateur. ``pharmacienResponsableId`` peut être null."""

    email: Optional[EmailStr] = None
    username: Optional[str] = Field(default=None, min_length=3, max_length=50)
    role: Optional[UserRole] = None
    pharmacien_responsable_id: Optional[int] = Field(default=None, alias="pharmacienResponsableId")
    subscription_status: Optional[SubscriptionStatus] = Field(default=None, alias="subscriptionStatus")

    class Config:
        populate_by_name = True

    @field_validator("role", mode="before")
    @classmethod
    def _normalize_role(cls, value):
        return _parse_role(value)

    @field_validator("subscription_status", mode="before")
    @classmethod
    def _normalize_subscription(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("username")
    @classmethod
    def _strip_username(cls, value: Optional[str]) -> Optional[str]:
        return _check_username(value)


class SubordinateStats(BaseModel):
    id: int
    username: str
    email: str
    skill_level: SkillLevel = Field(alias="skillLevel")
    pharmacien_responsable_id: Optional[int] = Field(default=None, alias="pharmacienResponsableId")
    fiches_read_count: int = Field(alias="fichesReadCount")
    quiz_count: int = Field(alias="quizCount")
    average_quiz_score: Optional[float] = Field(default=None, alias="averageQuizScore")
    last_login_at: Optional[datetime] = Field(default=None, alias="lastLogin")

    class Config:
        populate_by_name = True
