import logging
from typing import Dict, List

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.security import get_password_hash
from app.crud import user_crud
from app.db.session import atomic
from app.models.content.taxonomy_model import SystemeOrgane, Theme
from app.models.user.user_model import User, UserRole

logger = logging.getLogger(__name__)

INITIAL_THEMES: List[Dict[str, str]] = [
    {"id": "maladies-courantes", "Nom": "Maladies courantes", "description": "Pathologies fréquemment rencontrées à l'officine"},
    {"id": "ordonnances", "Nom": "Ordonnances", "description": "Analyse et validation des prescriptions"},
    {"id": "micronutrition", "Nom": "Micronutrition", "description": "Conseils nutritionnels et compléments alimentaires"},
    {"id": "dermocosmetique", "Nom": "Dermocosmétique", "description": "Produits de beauté et soins cutanés"},
    {"id": "dispositifs-medicaux", "Nom": "Dispositifs Médicaux", "description": "Matériel médical et paramédical"},
    {"id": "pharmacie-veterinaire", "Nom": "Pharmacie vétérinaire", "description": "Médicaments et soins pour animaux"},
    {"id": "communication", "Nom": "Communication", "description": "Techniques de conseil et relation client"},
]

INITIAL_SYSTEMES_ORGANES: List[Dict[str, str]] = [
    {"id": "orl-respiration", "Nom": "ORL & Respiration", "description": "Troubles respiratoires et ORL"},
    {"id": "digestion", "Nom": "Digestion", "description": "Pathologies digestives et gastro-intestinales"},
    {"id": "sante-cutanee", "Nom": "Santé cutanée", "description": "Dermatologie et soins de la peau"},
    {"id": "muscles-articulations", "Nom": "Muscles & Articulations", "description": "Rhumatologie et traumatologie"},
    {"id": "sante-feminine", "Nom": "Santé Féminine", "description": "Gynécologie et contraception"},
    {"id": "cardio-circulation", "Nom": "Cardio & Circulation", "description": "Cardiologie et troubles vasculaires"},
    {"id": "pediatrie", "Nom": "Pédiatrie", "description": "Soins spécifiques aux enfants"},
    {"id": "sommeil-stress", "Nom": "Sommeil & Stress", "description": "Troubles du sommeil et gestion du stress"},
]


def _seed_table(db: Session, model, rows: List[Dict[str, str]]) -> int:
    if db.query(model.id).first() is not None:
        return 0
    for row in rows:
        db.add(model(id=row["id"], nom=row["Nom"], description=row["description"]))
    return len(rows)


def seed_taxonomy(db: Session) -> int:
    """Insère le catalogue initial des thèmes / systèmes si les tables sont vides."""
    with atomic(db):
        created = _seed_table(db, Theme, INITIAL_THEMES)
        created += _seed_table(db, SystemeOrgane, INITIAL_SYSTEMES_ORGANES)
    if created:
        logger.info("%s entrée(s) de taxonomie initiale insérée(s).", created)
    return created


def ensure_default_admin(db: Session) -> bool:
    """Crée le compte Admin configuré s'il n'existe pas encore."""
    email = settings.DEFAULT_ADMIN_EMAIL
    password = settings.DEFAULT_ADMIN_PASSWORD
    if not email or not password:
        return False
    if user_crud.get_user_by_email(db, email) or user_crud.get_user_by_username(db, settings.DEFAULT_ADMIN_USERNAME):
        return False

    with atomic(db):
        db.add(
            User(
                email=email.strip().lower(),
                username=settings.DEFAULT_ADMIN_USERNAME,
                hashed_password=get_password_hash(password),
                role=UserRole.ADMIN,
            )
        )
    logger.info("Compte administrateur par défaut créé (%s).", settings.DEFAULT_ADMIN_USERNAME)
    return True


def init_db(db: Session) -> None:
    seed_taxonomy(db)
    ensure_default_admin(db)
