import pytest
from sqlalchemy import text

from app.db.session import Database, atomic
from app.models.content.taxonomy_model import Theme


def test_sqlite_file_database(tmp_path):
    database = Database(f"sqlite:///{tmp_path / 'local.db'}", slow_query_threshold_ms=0)
    try:
        database.create_all()
        assert database.engine.url.drivername == "sqlite"
        assert database.engine.url.database.endswith("local.db")
        with database.session() as db:
            assert db.execute(text("SELECT 1")).scalar() == 1
    finally:
        database.dispose()


def test_atomic_commits_on_success(db_session):
    with atomic(db_session):
        db_session.add(Theme(nom="Communication"))

    db_session.expunge_all()
    assert db_session.query(Theme).filter_by(nom="Communication").count() == 1


def test_atomic_rolls_back_everything_on_error(db_session):
    with pytest.raises(RuntimeError):
        with atomic(db_session):
            db_session.add(Theme(nom="Ordonnances"))
            db_session.flush()
            raise RuntimeError("échec en cours d'opération")

    assert db_session.query(Theme).count() == 0


def test_savepoint_rollback_keeps_outer_transaction(db_session):
    with atomic(db_session):
        db_session.add(Theme(nom="Micronutrition"))
        db_session.flush()
        with pytest.raises(RuntimeError):
            with db_session.begin_nested():
                db_session.add(Theme(nom="Dermocosmétique"))
                db_session.flush()
                raise RuntimeError("annulé")

    noms = {theme.nom for theme in db_session.query(Theme).all()}
    assert noms == {"Micronutrition"}


def test_iter_session_closes(database):
    generator = database.iter_session()
    db = next(generator)
    assert db.execute(text("SELECT 1")).scalar() == 1
    with pytest.raises(StopIteration):
        next(generator)
