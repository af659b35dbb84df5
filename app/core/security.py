# Fichier: pharmia/backend/app/core/security.py

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import ExpiredSignatureError, JWTError, jwt
from passlib import exc as passlib_exc
from passlib.context import CryptContext

from app.core.config import settings
from app.core.errors import InvalidToken
from app.models.user.user_model import UserRole

# --- Configuration de la Sécurité ---
ALGORITHM = "HS256"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenIdentity:
    """Identité et rôle figés dans le token au moment de son émission."""

    user_id: int
    role: UserRole
    username: str


# --- Fonctions Utilitaires ---
def create_access_token(
    user_id: int,
    role: UserRole,
    username: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Crée un token d'accès JWT portant l'identité et le rôle."""
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode = {
        "exp": expire,
        "sub": str(user_id),
        "role": role.value,
        "username": username,
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str | None) -> TokenIdentity:
    """Valide la signature et l'expiration puis renvoie l'identité encodée."""
    if not token:
        raise InvalidToken("Token d'authentification manquant ou invalide.")

    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
        return TokenIdentity(
            user_id=int(payload["sub"]),
            role=UserRole(payload["role"]),
            username=str(payload["username"]),
        )
    except ExpiredSignatureError:
        logger.warning("Validation échouée: Le token a expiré.")
    except (JWTError, KeyError, ValueError, TypeError):
        logger.warning("Validation échouée: Le token est invalide ou mal formé.")
    raise InvalidToken("Token d'authentification manquant ou invalide.")


def verify_password(plain_password: str | None, hashed_password: str | None) -> bool:
    """Vérifie si un mot de passe en clair correspond à un mot de passe haché."""

    if not plain_password or not hashed_password:
        return False

    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError, passlib_exc.PasslibError) as exc:
        logger.warning("Password verification failed: %s", type(exc).__name__)
        return False


def get_password_hash(password: str) -> str:
    """Hache un mot de passe."""
    return pwd_context.hash(password)
