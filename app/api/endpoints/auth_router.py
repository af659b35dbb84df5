# Fichier: pharmia/backend/app/api/endpoints/auth_router.py

import logging

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.api.dependencies import get_db
from app.core.config import settings
from app.core.errors import Forbidden
from app.models.user.user_model import UserRole
from app.schemas.user import user_schema
from app.services.auth_service import AuthService

router = APIRouter()
logger = logging.getLogger(__name__)

# Les comptes Admin / Formateur sont créés par un administrateur.
SELF_SERVICE_ROLES = {UserRole.PHARMACIEN, UserRole.PREPARATEUR}


def _cookie_options() -> dict:
    secure_cookie = settings.ENVIRONMENT == "production"
    return {
        "httponly": True,
        "samesite": "none" if secure_cookie else "lax",
        "secure": secure_cookie,
        "path": "/",
    }


@router.post("/register", response_model=user_schema.User, status_code=status.HTTP_201_CREATED)
def register(user_in: user_schema.UserRegister, db: Session = Depends(get_db)):
    if user_in.role not in SELF_SERVICE_ROLES:
        raise Forbidden("Ce rôle ne peut être attribué que par un administrateur.")
    return AuthService(db).register(user_in)


@router.post("/login", response_model=user_schema.LoginResponse)
def login(credentials: user_schema.LoginRequest, response: Response, db: Session = Depends(get_db)):
    result = AuthService(db).login(credentials.identifier, credentials.password)

    # Cookie pour le front servi sur un autre domaine; le token est aussi renvoyé dans le body.
    response.set_cookie(key="access_token", value=result.token, **_cookie_options())
    return user_schema.LoginResponse(
        token=result.token,
        role=result.role,
        username=result.username,
        capabilities=result.capabilities,
    )


@router.post("/logout")
def logout() -> JSONResponse:
    response = JSONResponse({"message": "Déconnexion réussie"})
    response.delete_cookie(key="access_token", **_cookie_options())
    return response
