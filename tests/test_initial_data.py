from app.core.config import settings
from app.core.security import verify_password
from app.db import initial_data
from app.models.content.taxonomy_model import SystemeOrgane, Theme
from app.models.user.user_model import User, UserRole


def test_seed_taxonomy_only_once(db_session):
    assert initial_data.seed_taxonomy(db_session) == 15
    assert initial_data.seed_taxonomy(db_session) == 0

    assert db_session.query(Theme).count() == 7
    assert db_session.get(SystemeOrgane, "sante-cutanee").nom == "Santé cutanée"


def test_seed_skips_non_empty_tables(db_session):
    db_session.add(Theme(nom="Dermatologie"))
    db_session.commit()

    assert initial_data.seed_taxonomy(db_session) == 8
    assert db_session.query(Theme).count() == 1


def test_default_admin_requires_configuration(db_session, monkeypatch):
    monkeypatch.setattr(settings, "DEFAULT_ADMIN_EMAIL", None)
    assert initial_data.ensure_default_admin(db_session) is False
    assert db_session.query(User).count() == 0


def test_default_admin_is_created_once(db_session, monkeypatch):
    monkeypatch.setattr(settings, "DEFAULT_ADMIN_EMAIL", "Admin@PharmIA.fr")
    monkeypatch.setattr(settings, "DEFAULT_ADMIN_PASSWORD", "changeme")

    assert initial_data.ensure_default_admin(db_session) is True
    assert initial_data.ensure_default_admin(db_session) is False

    admin = db_session.query(User).one()
    assert admin.role == UserRole.ADMIN
    assert admin.email == "admin@pharmia.fr"
    assert verify_password("changeme", admin.hashed_password)
