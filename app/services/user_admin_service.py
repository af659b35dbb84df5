import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import Conflict, NotFound, ValidationError
from app.core.permissions import Action, ensure_allowed
from app.core.security import TokenIdentity
from app.crud import user_crud
from app.db.session import atomic
from app.models.user.user_model import User, UserRole
from app.schemas.user.user_schema import AdminUserUpdate, SubordinateStats, UserRegister
from app.services.auth_service import AuthService

logger = logging.getLogger(__name__)


class UserAdminService:
    """Gestion des comptes par un administrateur et statistiques des préparateurs."""

    def __init__(self, db: Session, actor: TokenIdentity):
        self.db = db
        self.actor = actor

    # -----------------------------
    # Administration des comptes
    # -----------------------------
    def list_users(self, role: Optional[UserRole] = None) -> List[User]:
        ensure_allowed(self.actor.role, Action.MANAGE_USERS)
        return user_crud.list_users(self.db, role=role)

    def create_user(self, payload: UserRegister) -> User:
        ensure_allowed(self.actor.role, Action.MANAGE_USERS)
        user = AuthService(self.db).register(payload)
        logger.info("Compte %s créé par l'administrateur %s.", user.id, self.actor.user_id)
        return user

    def get_user(self, user_id: int) -> User:
        ensure_allowed(self.actor.role, Action.MANAGE_USERS)
        return self._get(user_id)

    def update_user(self, user_id: int, patch: AdminUserUpdate) -> User:
        ensure_allowed(self.actor.role, Action.MANAGE_USERS)
        user = self._get(user_id)
        present = patch.model_fields_set

        role = patch.role if "role" in present and patch.role is not None else user.role
        if user.id == self.actor.user_id and role != UserRole.ADMIN:
            raise ValidationError("Un administrateur ne peut pas retirer son propre rôle Admin.")

        if "pharmacien_responsable_id" in present:
            responsable_id = patch.pharmacien_responsable_id
        elif role != UserRole.PREPARATEUR:
            # Quitter le rôle préparateur détache le pharmacien responsable.
            responsable_id = None
        else:
            responsable_id = user.pharmacien_responsable_id
        if responsable_id is not None and responsable_id == user.id:
            raise ValidationError("Un préparateur ne peut pas être son propre pharmacien responsable.")
        AuthService(self.db).validate_responsable(role, responsable_id)
        if user.role == UserRole.PHARMACIEN and role != UserRole.PHARMACIEN:
            if user_crud.list_preparateurs(self.db, pharmacien_id=user.id):
                raise Conflict("Ce pharmacien encadre encore des préparateurs: réassignez-les avant de changer son rôle.")

        if "email" in present and patch.email is not None:
            existing = user_crud.get_user_by_email(self.db, patch.email)
            if existing is not None and existing.id != user.id:
                raise Conflict("Cette adresse email est déjà utilisée.")
        if "username" in present and patch.username is not None:
            existing = user_crud.get_user_by_username(self.db, patch.username)
            if existing is not None and existing.id != user.id:
                raise Conflict("Ce nom d'utilisateur est déjà pris.")

        try:
            with atomic(self.db):
                if "email" in present and patch.email is not None:
                    user.email = patch.email.strip().lower()
                if "username" in present and patch.username is not None:
                    user.username = patch.username.strip()
                user.role = role
                user.pharmacien_responsable_id = responsable_id
                if "subscription_status" in present and patch.subscription_status is not None:
                    user.subscription_status = patch.subscription_status
        except IntegrityError as exc:
            raise Conflict("Cet email ou ce nom d'utilisateur est déjà utilisé.") from exc

        self.db.refresh(user)
        logger.info("Compte %s modifié par l'administrateur %s (rôle=%s).", user.id, self.actor.user_id, user.role.value)
        return user

    def delete_user(self, user_id: int) -> None:
        ensure_allowed(self.actor.role, Action.MANAGE_USERS)
        if user_id == self.actor.user_id:
            raise ValidationError("Un administrateur ne peut pas supprimer son propre compte.")
        user = self._get(user_id)

        # Les préparateurs rattachés gardent leur référence (faible) vers ce compte.
        with atomic(self.db):
            self.db.delete(user)
        logger.info("Compte %s supprimé par l'administrateur %s.", user_id, self.actor.user_id)

    # -----------------------------
    # Statistiques des préparateurs
    # -----------------------------
    def subordinate_stats(self, pharmacien_id: Optional[int] = None) -> List[SubordinateStats]:
        ensure_allowed(self.actor.role, Action.VIEW_SUBORDINATE_STATS)
        if self.actor.role == UserRole.PHARMACIEN:
            # Un pharmacien ne voit que ses propres préparateurs, quel que soit le filtre.
            pharmacien_id = self.actor.user_id

        preparateurs = user_crud.list_preparateurs(self.db, pharmacien_id=pharmacien_id)
        aggregates = user_crud.get_learning_aggregates(self.db, [p.id for p in preparateurs])
        return [
            SubordinateStats(
                id=p.id,
                username=p.username,
                email=p.email,
                skill_level=p.skill_level,
                pharmacien_responsable_id=p.pharmacien_responsable_id,
                last_login_at=p.last_login_at,
                **aggregates[p.id],
            )
            for p in preparateurs
        ]

    def _get(self, user_id: int) -> User:
        user = user_crud.get_user(self.db, user_id)
        if user is None:
            raise NotFound(f"Utilisateur {user_id} introuvable.")
        return user
