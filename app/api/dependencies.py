import logging
import re
from typing import Callable, Generator, Optional
from urllib.parse import unquote

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.core import security
from app.core.ai_service import GeminiProvider
from app.core.errors import InvalidToken
from app.core.permissions import Action, ensure_allowed
from app.crud import user_crud
from app.db.session import Database
from app.models.user.user_model import User

log = logging.getLogger(__name__)


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_db(database: Database = Depends(get_database)) -> Generator[Session, None, None]:
    """Une session par requête, partagée par toutes les dépendances qui la demandent."""
    yield from database.iter_session()


def get_ai_provider(request: Request) -> GeminiProvider:
    return request.app.state.ai_provider


def _normalize_token_value(raw_token: Optional[str]) -> Optional[str]:
    """Extrait le JWT d'un en-tête ``Authorization`` ou d'un cookie.

    Accepte le préfixe ``Bearer`` quelle que soit la casse, les valeurs
    percent-encodées (``Bearer%20…``) et les guillemets ajoutés par certains
    clients.
    """
    if raw_token is None:
        return None

    token = unquote(raw_token.strip().strip('"').strip("'"))
    match = re.match(r"^bearer[\s:]+(.+)$", token, flags=re.IGNORECASE)
    if match:
        token = match.group(1)
    token = token.strip()
    return token or None


def get_current_identity(request: Request) -> security.TokenIdentity:
    """Identité et rôle portés par le token (valables jusqu'à son expiration)."""
    for candidate in (request.headers.get("Authorization"), request.cookies.get("access_token")):
        token = _normalize_token_value(candidate)
        if token:
            return security.decode_access_token(token)
    log.warning("Validation échouée: Pas de token fourni.")
    raise InvalidToken("Token d'authentification manquant ou invalide.")


def get_current_user(
    identity: security.TokenIdentity = Depends(get_current_identity),
    db: Session = Depends(get_db),
) -> User:
    user = user_crud.get_user(db, identity.user_id)
    if user is None:
        log.warning("Validation échouée: Utilisateur avec ID %s non trouvé.", identity.user_id)
        raise InvalidToken("Token d'authentification manquant ou invalide.")
    return user


def require_action(action: Action) -> Callable[..., security.TokenIdentity]:
    """Dépendance qui refuse la requête si le rôle du token n'autorise pas ``action``."""

    def _checker(identity: security.TokenIdentity = Depends(get_current_identity)) -> security.TokenIdentity:
        ensure_allowed(identity.role, action)
        return identity

    return _checker
