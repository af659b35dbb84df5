"""Migrations de données versionnées.

Chaque migration est enregistrée dans ``schema_migrations`` une fois
appliquée; ``run_migrations`` n'exécute que les versions manquantes, chacune
dans sa propre transaction. Les fonctions ``apply`` sont elles-mêmes
idempotentes: les rejouer sur des données déjà migrées ne change rien.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Set

from sqlalchemy import (
    Column,
    DateTime,
    MetaData,
    String,
    Table,
    inspect,
    select,
    text,
)
from sqlalchemy.engine import Connection, Engine

from app.models.user.user_model import ROLE_ALIASES, SkillLevel, SubscriptionStatus, UserRole

logger = logging.getLogger(__name__)

_metadata = MetaData()

schema_migrations = Table(
    "schema_migrations",
    _metadata,
    Column("version", String(64), primary_key=True),
    Column("description", String(255), nullable=False),
    Column("applied_at", DateTime(timezone=True), nullable=False),
)


@dataclass(frozen=True)
class Migration:
    version: str
    description: str
    apply: Callable[[Connection], int]


def _canonical_roles(conn: Connection) -> int:
    """Réécrit toutes les graphies historiques des rôles vers la valeur canonique."""
    stmt = text("UPDATE users SET role = :canonical WHERE role = :legacy")
    changed = 0
    for legacy, role in ROLE_ALIASES.items():
        spellings = {legacy, legacy.capitalize()} - {role.value}
        for spelling in spellings:
            changed += conn.execute(stmt, {"canonical": role.value, "legacy": spelling}).rowcount or 0
    return changed


def _responsable_only_for_preparateurs(conn: Connection) -> int:
    stmt = text(
        "UPDATE users SET pharmacien_responsable_id = NULL "
        "WHERE role <> :preparateur AND pharmacien_responsable_id IS NOT NULL"
    )
    return conn.execute(stmt, {"preparateur": UserRole.PREPARATEUR.value}).rowcount or 0


def _default_skill_level(conn: Connection) -> int:
    stmt = text("UPDATE users SET skill_level = :level WHERE skill_level IS NULL")
    return conn.execute(stmt, {"level": SkillLevel.DEBUTANT.value}).rowcount or 0


def _subscription_status(conn: Connection) -> int:
    """Ajoute la colonne d'abonnement aux bases antérieures, 'free' par défaut."""
    columns = {column["name"] for column in inspect(conn).get_columns("users")}
    if "subscription_status" not in columns:
        conn.execute(text("ALTER TABLE users ADD COLUMN subscription_status VARCHAR(16) NOT NULL DEFAULT 'free'"))
        return conn.execute(text("SELECT COUNT(*) FROM users")).scalar_one()
    stmt = text("UPDATE users SET subscription_status = :free WHERE subscription_status IS NULL")
    return conn.execute(stmt, {"free": SubscriptionStatus.FREE.value}).rowcount or 0


MIGRATIONS: List[Migration] = [
    Migration("0001_canonical_roles", "Rôles historiques -> valeurs canoniques", _canonical_roles),
    Migration(
        "0002_responsable_only_for_preparateurs",
        "Pharmacien responsable réservé aux préparateurs",
        _responsable_only_for_preparateurs,
    ),
    Migration("0003_default_skill_level", "Niveau Débutant par défaut", _default_skill_level),
    Migration("0004_subscription_status", "Statut d'abonnement free/premium", _subscription_status),
]


def applied_versions(engine: Engine) -> Set[str]:
    if not inspect(engine).has_table(schema_migrations.name):
        return set()
    with engine.connect() as conn:
        return set(conn.execute(select(schema_migrations.c.version)).scalars())


def pending_migrations(engine: Engine) -> List[Migration]:
    done = applied_versions(engine)
    return [m for m in sorted(MIGRATIONS, key=lambda m: m.version) if m.version not in done]


def run_migrations(engine: Engine) -> List[str]:
    """Applique les migrations manquantes et renvoie les versions appliquées."""
    _metadata.create_all(bind=engine)
    applied: List[str] = []
    for migration in pending_migrations(engine):
        with engine.begin() as conn:
            changed = migration.apply(conn)
            conn.execute(
                schema_migrations.insert().values(
                    version=migration.version,
                    description=migration.description,
                    applied_at=datetime.now(timezone.utc),
                )
            )
        logger.info("Migration %s appliquée (%s ligne(s) modifiée(s)).", migration.version, changed)
        applied.append(migration.version)
    if not applied:
        logger.info("Schéma à jour, aucune migration à appliquer.")
    return applied
