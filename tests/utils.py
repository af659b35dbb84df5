"""Utility helpers for test factories."""

from __future__ import annotations

from datetime import datetime, timezone

from app.core.security import create_access_token, get_password_hash
from app.models.content.memofiche_model import MemoFiche
from app.models.user.user_model import User, UserRole

DEFAULT_PASSWORD = "motdepasse"


def create_user(db, **kwargs) -> User:
    defaults = {
        "username": "user",
        "email": "user@example.com",
        "hashed_password": "x",
        "role": UserRole.PHARMACIEN,
        "created_at": datetime.now(timezone.utc),
    }
    defaults.update(kwargs)
    if "password" in defaults:
        defaults["hashed_password"] = get_password_hash(defaults.pop("password"))
    user = User(**defaults)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def create_memofiche(db, **kwargs) -> MemoFiche:
    defaults = {
        "title": "Rhume",
        "short_description": "Conseils face au rhume",
        "theme": {"id": "maladies-courantes", "Nom": "Maladies courantes"},
        "systeme_organe": {"id": "orl-respiration", "Nom": "ORL & Respiration"},
        "memo_content": [],
        "flashcards": [],
        "quiz": [],
        "glossary_terms": [],
        "external_resources": [],
        "created_at": datetime.now(timezone.utc),
    }
    defaults.update(kwargs)
    fiche = MemoFiche(**defaults)
    db.add(fiche)
    db.commit()
    db.refresh(fiche)
    return fiche


def auth_headers(user: User) -> dict[str, str]:
    token = create_access_token(user.id, user.role, user.username)
    return {"Authorization": f"Bearer {token}"}


def fiche_payload(**overrides) -> dict:
    payload = {
        "title": "Eczéma atopique",
        "shortDescription": "Prise en charge à l'officine",
        "theme": {"Nom": "Dermatologie"},
        "systeme_organe": {"Nom": "Santé cutanée"},
        "memoContent": [
            {
                "id": "s1",
                "title": "Définition",
                "content": "Maladie inflammatoire chronique de la peau.",
                "children": [{"id": "s1-1", "title": "Signes", "content": "Prurit, sécheresse."}],
            }
        ],
        "flashcards": [{"question": "Symptôme majeur ?", "answer": "Le prurit"}],
        "quiz": [
            {
                "question": "Quel soin de base ?",
                "options": ["Émollient", "Antibiotique"],
                "correctAnswer": "Émollient",
                "explanation": "L'émollient restaure la barrière cutanée.",
            }
        ],
        "glossaryTerms": [{"term": "Xérose", "definition": "Sécheresse cutanée"}],
    }
    payload.update(overrides)
    return payload


class FakeProvider:
    """Fournisseur IA factice: renvoie ``reply`` et garde les prompts reçus."""

    def __init__(self, reply: str = "{}"):
        self.reply = reply
        self.prompts: list[str] = []
        self.json_modes: list[bool] = []
        self.configured = True

    @property
    def is_configured(self) -> bool:
        return self.configured

    def generate(self, prompt: str, json_mode: bool = True) -> str:
        self.prompts.append(prompt)
        self.json_modes.append(json_mode)
        return self.reply
