from typing import List

from sqlalchemy.orm import Session

from app.gamification.badge_rules import BADGE_CATALOG
from app.models.user.badge_model import UserBadge
from app.schemas.user.badge_schema import BadgeWithStatus


def get_owned_badge_ids(db: Session, user_id: int) -> set[str]:
    rows = db.query(UserBadge.badge_id).filter(UserBadge.user_id == user_id).all()
    return {row[0] for row in rows}


def get_badges_with_status(db: Session, user_id: int) -> List[BadgeWithStatus]:
    owned = get_owned_badge_ids(db, user_id)
    return [
        BadgeWithStatus(
            id=badge.id,
            name=badge.name,
            description=badge.description,
            icon=badge.icon,
            earned=badge.id in owned,
        )
        for badge in BADGE_CATALOG
    ]


def add_user_badges(db: Session, user_id: int, badge_ids: List[str]) -> None:
    """Ajoute les badges sans valider la transaction (l'appelant commit)."""
    for badge_id in badge_ids:
        db.add(UserBadge(user_id=user_id, badge_id=badge_id))
