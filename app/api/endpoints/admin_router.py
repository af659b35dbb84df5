# Fichier: pharmia/backend/app/api/endpoints/admin_router.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.api.dependencies import get_db, require_action
from app.core.errors import ValidationError
from app.core.permissions import Action
from app.core.security import TokenIdentity
from app.models.user.user_model import UserRole
from app.schemas.user import user_schema
from app.services.user_admin_service import UserAdminService

router = APIRouter()

manage_users = require_action(Action.MANAGE_USERS)
view_subordinates = require_action(Action.VIEW_SUBORDINATE_STATS)


@router.get("/admin/users", response_model=List[user_schema.User])
def list_users(
    role: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    identity: TokenIdentity = Depends(manage_users),
):
    try:
        parsed = UserRole.parse(role) if role else None
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc
    return UserAdminService(db, identity).list_users(role=parsed)


@router.get("/admin/formateurs", response_model=List[user_schema.User])
def list_formateurs(
    db: Session = Depends(get_db),
    identity: TokenIdentity = Depends(manage_users),
):
    return UserAdminService(db, identity).list_users(role=UserRole.FORMATEUR)


@router.post("/admin/users", response_model=user_schema.User, status_code=status.HTTP_201_CREATED)
def create_user(
    user_in: user_schema.UserRegister,
    db: Session = Depends(get_db),
    identity: TokenIdentity = Depends(manage_users),
):
    return UserAdminService(db, identity).create_user(user_in)


@router.get("/admin/users/{user_id}", response_model=user_schema.User)
def read_user(
    user_id: int,
    db: Session = Depends(get_db),
    identity: TokenIdentity = Depends(manage_users),
):
    return UserAdminService(db, identity).get_user(user_id)


@router.put("/admin/users/{user_id}", response_model=user_schema.User)
def update_user(
    user_id: int,
    patch: user_schema.AdminUserUpdate,
    db: Session = Depends(get_db),
    identity: TokenIdentity = Depends(manage_users),
):
    return UserAdminService(db, identity).update_user(user_id, patch)


@router.delete("/admin/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    identity: TokenIdentity = Depends(manage_users),
):
    UserAdminService(db, identity).delete_user(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/pharmacien/preparateurs", response_model=List[user_schema.SubordinateStats])
def list_preparateurs(
    pharmacien_id: Optional[int] = Query(default=None, alias="pharmacienId"),
    db: Session = Depends(get_db),
    identity: TokenIdentity = Depends(view_subordinates),
):
    return UserAdminService(db, identity).subordinate_stats(pharmacien_id=pharmacien_id)
