# Fichier: pharmia/backend/app/crud/user_crud.py

from sqlalchemy import func, select
from sqlalchemy.orm import Session
from typing import List, Optional

from app.models.progress.quiz_attempt_model import QuizAttempt
from app.models.progress.read_fiche_model import UserReadFiche
from app.models.user.user_model import User, UserRole


def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.get(User, user_id)


def user_for_update_statement(user_id: int):
    return (
        select(User)
        .where(User.id == user_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )


def get_user_for_update(db: Session, user_id: int) -> Optional[User]:
    """
    Charge un utilisateur en verrouillant sa ligne jusqu'à la fin de la transaction.

    Sérialise les lectures-modifications-écritures concurrentes de l'état
    d'apprentissage d'un même utilisateur (``FOR UPDATE`` est ignoré par SQLite,
    qui sérialise déjà les écritures).
    """
    return db.execute(user_for_update_statement(user_id)).scalars().first()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """
    Récupère un utilisateur par son adresse email.

    Args:
        db: La session de base de données.
        email: L'email de l'utilisateur à rechercher.

    Returns:
        L'objet User s'il est trouvé, sinon None.
    """
    return db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()


def get_user_by_username(db: Session, username: str) -> Optional[User]:
    """
    Récupère un utilisateur par son nom d'utilisateur.

    Args:
        db: La session de base de données.
        username: Le nom d'utilisateur à rechercher.

    Returns:
        L'objet User s'il est trouvé, sinon None.
    """
    return db.query(User).filter(User.username == username.strip()).first()


def get_user_by_identifier(db: Session, identifier: str) -> Optional[User]:
    """Recherche par email, puis par nom d'utilisateur (écran de connexion)."""
    return get_user_by_email(db, identifier) or get_user_by_username(db, identifier)


def list_users(db: Session, role: Optional[UserRole] = None) -> List[User]:
    query = db.query(User)
    if role is not None:
        query = query.filter(User.role == role)
    return query.order_by(User.created_at.desc(), User.id.desc()).all()


def list_preparateurs(db: Session, pharmacien_id: Optional[int] = None) -> List[User]:
    query = db.query(User).filter(User.role == UserRole.PREPARATEUR)
    if pharmacien_id is not None:
        query = query.filter(User.pharmacien_responsable_id == pharmacien_id)
    return query.order_by(User.username.asc()).all()


def get_learning_aggregates(db: Session, user_ids: List[int]) -> dict[int, dict]:
    """Renvoie, par utilisateur, le nombre de fiches lues, de quiz passés et la moyenne."""
    if not user_ids:
        return {}

    read_counts = dict(
        db.query(UserReadFiche.user_id, func.count(UserReadFiche.id))
        .filter(UserReadFiche.user_id.in_(user_ids))
        .group_by(UserReadFiche.user_id)
        .all()
    )
    quiz_rows = (
        db.query(QuizAttempt.user_id, func.count(QuizAttempt.id), func.avg(QuizAttempt.score))
        .filter(QuizAttempt.user_id.in_(user_ids))
        .group_by(QuizAttempt.user_id)
        .all()
    )
    quiz_stats = {user_id: (count, avg) for user_id, count, avg in quiz_rows}

    aggregates: dict[int, dict] = {}
    for user_id in user_ids:
        quiz_count, avg = quiz_stats.get(user_id, (0, None))
        aggregates[user_id] = {
            "fiches_read_count": int(read_counts.get(user_id, 0)),
            "quiz_count": int(quiz_count),
            "average_quiz_score": round(float(avg), 1) if avg is not None else None,
        }
    return aggregates
