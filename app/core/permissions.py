"""
Politique d'autorisation centralisée: (rôle, action) -> autorisé / refusé.

Toutes les vérifications de droits (routes, services, booléens exposés au
front) passent par ``allow``. La table ``POLICY`` est l'unique source de vérité.
"""
from __future__ import annotations

import enum
from typing import Dict, FrozenSet

from app.core.errors import Forbidden
from app.models.user.user_model import UserRole


class Action(str, enum.Enum):
    CREATE_MEMOFICHE = "create_memofiche"
    UPDATE_MEMOFICHE = "update_memofiche"
    DELETE_MEMOFICHE = "delete_memofiche"
    VIEW_CATALOG = "view_catalog"
    VIEW_OWN_LEARNER_DATA = "view_own_learner_data"
    VIEW_SUBORDINATE_STATS = "view_subordinate_stats"
    MANAGE_USERS = "manage_users"


_EVERYONE = frozenset(UserRole)

POLICY: Dict[Action, FrozenSet[UserRole]] = {
    Action.CREATE_MEMOFICHE: frozenset({UserRole.ADMIN, UserRole.FORMATEUR}),
    Action.UPDATE_MEMOFICHE: frozenset({UserRole.ADMIN, UserRole.FORMATEUR}),
    Action.DELETE_MEMOFICHE: frozenset({UserRole.ADMIN}),
    Action.VIEW_CATALOG: _EVERYONE,
    Action.VIEW_OWN_LEARNER_DATA: _EVERYONE,
    # Un pharmacien ne voit que ses propres préparateurs (filtré par la requête).
    Action.VIEW_SUBORDINATE_STATS: frozenset({UserRole.ADMIN, UserRole.PHARMACIEN}),
    Action.MANAGE_USERS: frozenset({UserRole.ADMIN}),
}


def allow(role: UserRole, action: Action) -> bool:
    return role in POLICY.get(action, frozenset())


def ensure_allowed(role: UserRole, action: Action) -> None:
    if not allow(role, action):
        raise Forbidden(f"Le rôle {role.value} n'est pas autorisé à effectuer cette action.")


def capabilities(role: UserRole) -> Dict[str, bool]:
    """Booléens dérivés consommés par l'interface."""
    return {
        "canGenerateMemoFiche": allow(role, Action.CREATE_MEMOFICHE),
        "canEditMemoFiches": allow(role, Action.UPDATE_MEMOFICHE),
        "canDeleteMemoFiches": allow(role, Action.DELETE_MEMOFICHE),
        "canViewSubordinateStats": allow(role, Action.VIEW_SUBORDINATE_STATS),
        "canManageUsers": allow(role, Action.MANAGE_USERS),
    }
