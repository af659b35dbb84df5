from sqlalchemy import Integer, String, DateTime, func, Enum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.db.base_class import Base
from typing import List, Optional, TYPE_CHECKING
from datetime import datetime
import enum

if TYPE_CHECKING:
    from .badge_model import UserBadge
    from ..progress.read_fiche_model import UserReadFiche
    from ..progress.quiz_attempt_model import QuizAttempt


class UserRole(str, enum.Enum):
    ADMIN = "Admin"
    FORMATEUR = "Formateur"
    PHARMACIEN = "Pharmacien"
    PREPARATEUR = "Preparateur"

    @classmethod
    def parse(cls, value: "str | UserRole") -> "UserRole":
        """Accepte les graphies historiques ('admin', 'Préparateur', ...)."""
        if isinstance(value, cls):
            return value
        canonical = ROLE_ALIASES.get(str(value).strip().lower())
        if canonical is None:
            raise ValueError(f"Rôle inconnu: {value!r}")
        return canonical


ROLE_ALIASES = {
    "admin": UserRole.ADMIN,
    "formateur": UserRole.FORMATEUR,
    "pharmacien": UserRole.PHARMACIEN,
    "preparateur": UserRole.PREPARATEUR,
    "préparateur": UserRole.PREPARATEUR,
}


class SkillLevel(str, enum.Enum):
    DEBUTANT = "Débutant"
    INTERMEDIAIRE = "Intermédiaire"
    EXPERT = "Expert"

    @property
    def rank(self) -> int:
        return SKILL_LEVEL_ORDER.index(self)


SKILL_LEVEL_ORDER = [SkillLevel.DEBUTANT, SkillLevel.INTERMEDIAIRE, SkillLevel.EXPERT]


class SubscriptionStatus(str, enum.Enum):
    FREE = "free"
    PREMIUM = "premium"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, index=True, nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String, nullable=False)
    role: Mapped[UserRole] = mapped_column(
        Enum(
            UserRole,
            name="userrole",
            values_callable=_enum_values,
            native_enum=False,
            length=32,
            validate_strings=True,
        ),
        nullable=False,
    )
    # Référence faible vers le pharmacien responsable: simple lookup, aucune cascade.
    pharmacien_responsable_id: Mapped[Optional[int]] = mapped_column(Integer, index=True, nullable=True)
    skill_level: Mapped[SkillLevel] = mapped_column(
        Enum(SkillLevel, name="skilllevel", values_callable=_enum_values, native_enum=False, length=32),
        nullable=False,
        default=SkillLevel.DEBUTANT,
        server_default=SkillLevel.DEBUTANT.value,
    )
    subscription_status: Mapped[SubscriptionStatus] = mapped_column(
        Enum(SubscriptionStatus, name="subscriptionstatus", values_callable=_enum_values, native_enum=False, length=16),
        nullable=False,
        default=SubscriptionStatus.FREE,
        server_default=SubscriptionStatus.FREE.value,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    last_login_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # --- Historiques (possédés par l'utilisateur) ---
    read_fiches: Mapped[List["UserReadFiche"]] = relationship(
        back_populates="user", cascade="all, delete-orphan", order_by="UserReadFiche.id"
    )
    quiz_attempts: Mapped[List["QuizAttempt"]] = relationship(
        back_populates="user", cascade="all, delete-orphan", order_by="QuizAttempt.id"
    )
    user_badges: Mapped[List["UserBadge"]] = relationship(
        back_populates="user", cascade="all, delete-orphan", order_by="UserBadge.id"
    )

    @property
    def read_fiche_ids(self) -> List[str]:
        return [entry.fiche_id for entry in self.read_fiches]

    @property
    def quiz_history(self) -> List["QuizAttempt"]:
        return list(self.quiz_attempts)

    @property
    def badges(self) -> List[str]:
        return [user_badge.badge_id for user_badge in self.user_badges]

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', role='{self.role.value}')>"
