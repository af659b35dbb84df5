"""Accès aux thèmes et systèmes d'organes, dédupliqués par ``Nom``."""

from __future__ import annotations

import logging
from typing import List, Optional, Type, TypeVar, Union

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import UpstreamError
from app.models.content.taxonomy_model import SystemeOrgane, Theme

logger = logging.getLogger(__name__)

TaxonomyModel = TypeVar("TaxonomyModel", Theme, SystemeOrgane)


def get_by_nom(db: Session, model: Type[TaxonomyModel], nom: str) -> Optional[TaxonomyModel]:
    return db.query(model).filter(model.nom == nom).first()


def list_all(db: Session, model: Type[TaxonomyModel]) -> List[TaxonomyModel]:
    return db.query(model).order_by(model.nom.asc()).all()


def find_or_create_by_nom(
    db: Session,
    model: Type[TaxonomyModel],
    nom: str,
    description: Optional[str] = None,
    *,
    max_attempts: Optional[int] = None,
) -> TaxonomyModel:
    """
    Renvoie la ligne portant ``nom``, en l'insérant si elle n'existe pas.

    L'insertion se fait dans un SAVEPOINT: si un écrivain concurrent a inséré
    le même ``Nom`` entre la lecture et l'écriture, la contrainte d'unicité
    échoue, le SAVEPOINT est annulé et la ligne gagnante est relue. Rien n'est
    validé ici: la transaction appartient à l'appelant.
    """
    attempts = max_attempts or settings.TAXONOMY_UPSERT_MAX_ATTEMPTS
    table = model.__tablename__

    for attempt in range(1, attempts + 1):
        existing = get_by_nom(db, model, nom)
        if existing is not None:
            return existing

        row = model(nom=nom, description=description)
        try:
            with db.begin_nested():
                db.add(row)
        except IntegrityError:
            logger.warning(
                "Insertion concurrente de '%s' dans %s (tentative %s/%s), relecture.",
                nom,
                table,
                attempt,
                attempts,
            )
            continue

        logger.info("Nouvelle entrée '%s' créée dans %s (id=%s).", nom, table, row.id)
        return row

    raise UpstreamError(f"Impossible de résoudre '{nom}' dans {table} après {attempts} tentatives.")


def resolve_reference(
    db: Session,
    model: Union[Type[Theme], Type[SystemeOrgane]],
    nom: str,
    description: Optional[str] = None,
) -> dict:
    """Référence dénormalisée ``{id, Nom}`` à embarquer dans une mémofiche."""
    row = find_or_create_by_nom(db, model, nom, description)
    return {"id": row.id, "Nom": row.nom}
