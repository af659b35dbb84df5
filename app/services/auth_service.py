import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core import security
from app.core.errors import Conflict, InvalidCredentials, ValidationError
from app.core.permissions import capabilities
from app.crud import user_crud
from app.db.session import atomic
from app.models.user.user_model import User, UserRole
from app.schemas.user.user_schema import UserRegister

logger = logging.getLogger(__name__)

_INVALID_CREDENTIALS_MESSAGE = "Identifiant ou mot de passe incorrect."


@dataclass(frozen=True)
class LoginResult:
    token: str
    role: UserRole
    username: str
    capabilities: Dict[str, bool]


class AuthService:
    """Inscription, connexion et vérification des tokens."""

    def __init__(self, db: Session):
        self.db = db

    def register(self, payload: UserRegister) -> User:
        if user_crud.get_user_by_email(self.db, payload.email):
            raise Conflict("Cette adresse email est déjà utilisée.")
        if user_crud.get_user_by_username(self.db, payload.username):
            raise Conflict("Ce nom d'utilisateur est déjà pris.")

        self.validate_responsable(payload.role, payload.pharmacien_responsable_id)

        db_user = User(
            email=payload.email.strip().lower(),
            username=payload.username,
            hashed_password=security.get_password_hash(payload.password),
            role=payload.role,
            pharmacien_responsable_id=payload.pharmacien_responsable_id,
        )
        try:
            with atomic(self.db):
                self.db.add(db_user)
        except IntegrityError as exc:
            # Course avec une inscription concurrente sur le même email / nom.
            raise Conflict("Cet email ou ce nom d'utilisateur est déjà utilisé.") from exc

        self.db.refresh(db_user)
        logger.info("Utilisateur %s inscrit avec le rôle %s.", db_user.id, db_user.role.value)
        return db_user

    def login(self, identifier: str, password: str) -> LoginResult:
        user = user_crud.get_user_by_identifier(self.db, identifier)
        # Même erreur pour « utilisateur inconnu » et « mauvais mot de passe ».
        if user is None or not security.verify_password(password, user.hashed_password):
            logger.warning("Tentative de connexion refusée.")
            raise InvalidCredentials(_INVALID_CREDENTIALS_MESSAGE)

        with atomic(self.db):
            user.last_login_at = datetime.now(timezone.utc)

        token = security.create_access_token(user.id, user.role, user.username)
        logger.info("Utilisateur %s connecté.", user.id)
        return LoginResult(
            token=token,
            role=user.role,
            username=user.username,
            capabilities=capabilities(user.role),
        )

    @staticmethod
    def verify(token: str) -> security.TokenIdentity:
        return security.decode_access_token(token)

    def validate_responsable(self, role: UserRole, pharmacien_responsable_id: Optional[int]) -> None:
        """Un préparateur a toujours un pharmacien responsable existant; les autres rôles jamais."""
        if role != UserRole.PREPARATEUR:
            if pharmacien_responsable_id is not None:
                raise ValidationError("Seul un préparateur peut avoir un pharmacien responsable.")
            return

        if pharmacien_responsable_id is None:
            raise ValidationError("Un préparateur doit être rattaché à un pharmacien responsable.")

        pharmacien = user_crud.get_user(self.db, pharmacien_responsable_id)
        if pharmacien is None or pharmacien.role != UserRole.PHARMACIEN:
            raise ValidationError("Le pharmacien responsable indiqué n'existe pas.")
