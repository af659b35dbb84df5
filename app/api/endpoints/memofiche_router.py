# Fichier: pharmia/backend/app/api/endpoints/memofiche_router.py

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from app.api.dependencies import get_current_identity, get_db
from app.core.errors import NotFound
from app.core.security import TokenIdentity
from app.crud import memofiche_crud, taxonomy_crud
from app.models.content.taxonomy_model import SystemeOrgane, Theme
from app.schemas.content import memofiche_schema
from app.services.memofiche_service import MemoFicheService

router = APIRouter()


@router.get("/data", response_model=memofiche_schema.CatalogRead, summary="Catalogue complet")
def read_catalog(db: Session = Depends(get_db)):
    return {
        "themes": taxonomy_crud.list_all(db, Theme),
        "systemesOrganes": taxonomy_crud.list_all(db, SystemeOrgane),
        "memofiches": memofiche_crud.list_memofiches(db),
    }


@router.get("/memofiches/{fiche_id}", response_model=memofiche_schema.MemoFicheRead)
def read_memofiche(fiche_id: str, db: Session = Depends(get_db)):
    fiche = memofiche_crud.get_memofiche(db, fiche_id)
    if fiche is None:
        raise NotFound(f"Mémofiche {fiche_id} introuvable.")
    return fiche


@router.post(
    "/memofiches",
    response_model=memofiche_schema.MemoFicheRead,
    status_code=status.HTTP_201_CREATED,
)
def create_memofiche(
    fiche_in: memofiche_schema.MemoFicheCreate,
    db: Session = Depends(get_db),
    identity: TokenIdentity = Depends(get_current_identity),
):
    return MemoFicheService(db, identity.role).create(fiche_in)


@router.put("/memofiches/{fiche_id}", response_model=memofiche_schema.MemoFicheRead)
def update_memofiche(
    fiche_id: str,
    patch: memofiche_schema.MemoFichePatch,
    db: Session = Depends(get_db),
    identity: TokenIdentity = Depends(get_current_identity),
):
    return MemoFicheService(db, identity.role).update(fiche_id, patch)


@router.delete("/memofiches/{fiche_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_memofiche(
    fiche_id: str,
    db: Session = Depends(get_db),
    identity: TokenIdentity = Depends(get_current_identity),
):
    MemoFicheService(db, identity.role).delete(fiche_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
