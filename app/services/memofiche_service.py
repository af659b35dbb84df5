import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from app.core.errors import NotFound, ValidationError
from app.core.permissions import Action, ensure_allowed
from app.crud import memofiche_crud, taxonomy_crud
from app.db.session import atomic
from app.models.content.memofiche_model import MemoFiche
from app.models.content.taxonomy_model import SystemeOrgane, Theme
from app.models.user.user_model import UserRole
from app.schemas.content.memofiche_schema import MemoFicheCreate, MemoFichePatch, TaxonomyRef

logger = logging.getLogger(__name__)

# Substitut utilisé quand une fiche n'est rattachée à aucun système d'organes.
SYSTEME_ORGANE_NON_APPLICABLE = {"id": "N/A", "Nom": "Non applicable"}

# Champs JSON stockés tels qu'exposés par l'API (alias camelCase).
_DOCUMENT_FIELDS = ("memo_content", "flashcards", "quiz", "glossary_terms", "external_resources")
_SCALAR_FIELDS = ("title", "short_description", "image_url", "flash_summary", "level", "kahoot_url")


class MemoFicheService:
    """Création, mise à jour et suppression des mémofiches pour un acteur donné.

    Chaque opération est atomique: la résolution des thèmes / systèmes et
    l'écriture de la fiche partagent la même transaction, annulée en bloc au
    moindre échec.
    """

    def __init__(self, db: Session, actor_role: UserRole):
        self.db = db
        self.actor_role = actor_role

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def create(self, fiche: MemoFicheCreate) -> MemoFiche:
        ensure_allowed(self.actor_role, Action.CREATE_MEMOFICHE)

        values = fiche.model_dump(include=set(_SCALAR_FIELDS))
        values.update(self._dump_documents(fiche, _DOCUMENT_FIELDS))

        with atomic(self.db):
            values["theme"] = self._resolve_theme(fiche.theme)
            values["systeme_organe"] = self._resolve_systeme_organe(fiche.systeme_organe)
            db_fiche = MemoFiche(created_at=datetime.now(timezone.utc), **values)
            self.db.add(db_fiche)

        self.db.refresh(db_fiche)
        logger.info("Mémofiche '%s' créée (id=%s, rôle=%s).", db_fiche.title, db_fiche.id, self.actor_role.value)
        return db_fiche

    def update(self, fiche_id: str, patch: MemoFichePatch) -> MemoFiche:
        ensure_allowed(self.actor_role, Action.UPDATE_MEMOFICHE)

        db_fiche = memofiche_crud.get_memofiche(self.db, fiche_id)
        if db_fiche is None:
            raise NotFound(f"Mémofiche {fiche_id} introuvable.")

        # Seuls les champs explicitement envoyés sont appliqués; ``id`` et
        # ``createdAt`` ne font pas partie du schéma de patch.
        present = patch.model_fields_set
        changes: Dict[str, Any] = {}
        for field in _SCALAR_FIELDS:
            if field in present:
                changes[field] = getattr(patch, field)
        if "title" in changes and not changes["title"]:
            raise ValidationError("Le titre d'une mémofiche ne peut pas être vide.")
        changes.update(self._dump_documents(patch, [f for f in _DOCUMENT_FIELDS if f in present]))

        with atomic(self.db):
            if "theme" in present:
                if patch.theme is None:
                    raise ValidationError("Une mémofiche doit être rattachée à un thème.")
                changes["theme"] = self._resolve_theme(patch.theme)
            if "systeme_organe" in present:
                changes["systeme_organe"] = self._resolve_systeme_organe(patch.systeme_organe)

            for field, value in changes.items():
                if value is None and field in _DOCUMENT_FIELDS:
                    value = []
                elif value is None and field == "short_description":
                    value = ""
                setattr(db_fiche, field, value)
            db_fiche.updated_at = datetime.now(timezone.utc)

        self.db.refresh(db_fiche)
        logger.info("Mémofiche %s mise à jour (%s).", db_fiche.id, ", ".join(sorted(changes)) or "aucun champ")
        return db_fiche

    def delete(self, fiche_id: str) -> None:
        ensure_allowed(self.actor_role, Action.DELETE_MEMOFICHE)

        db_fiche = memofiche_crud.get_memofiche(self.db, fiche_id)
        if db_fiche is None:
            raise NotFound(f"Mémofiche {fiche_id} introuvable.")

        # Les thèmes / systèmes devenus orphelins sont conservés.
        with atomic(self.db):
            self.db.delete(db_fiche)
        logger.info("Mémofiche %s supprimée.", fiche_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _resolve_theme(self, ref: TaxonomyRef) -> dict:
        return taxonomy_crud.resolve_reference(self.db, Theme, ref.nom)

    def _resolve_systeme_organe(self, ref: Optional[TaxonomyRef]) -> dict:
        if ref is None or ref.nom == SYSTEME_ORGANE_NON_APPLICABLE["Nom"]:
            return dict(SYSTEME_ORGANE_NON_APPLICABLE)
        return taxonomy_crud.resolve_reference(self.db, SystemeOrgane, ref.nom)

    @staticmethod
    def _dump_documents(model, fields) -> Dict[str, Any]:
        dumped: Dict[str, Any] = {}
        for field in fields:
            items = getattr(model, field)
            if items is None:
                dumped[field] = None
                continue
            dumped[field] = [item.model_dump(by_alias=True, exclude_none=True) for item in items]
        return dumped
