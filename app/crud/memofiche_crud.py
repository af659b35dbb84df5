# Fichier: pharmia/backend/app/crud/memofiche_crud.py

from sqlalchemy.orm import Session
from typing import List, Optional

from app.models.content.memofiche_model import MemoFiche


def get_memofiche(db: Session, fiche_id: str) -> Optional[MemoFiche]:
    return db.get(MemoFiche, fiche_id)


def list_memofiches(db: Session) -> List[MemoFiche]:
    """Toutes les mémofiches, les plus récentes en premier."""
    return db.query(MemoFiche).order_by(MemoFiche.created_at.desc(), MemoFiche.id.asc()).all()


def list_catalog_summary(db: Session, exclude_id: Optional[str] = None) -> List[dict]:
    """Résumé minimal du catalogue (id, titre, présence d'un quiz) envoyé au coach IA."""
    summary = []
    for fiche in list_memofiches(db):
        if exclude_id and fiche.id == exclude_id:
            continue
        summary.append({"id": fiche.id, "title": fiche.title, "hasQuiz": fiche.has_quiz})
    return summary
