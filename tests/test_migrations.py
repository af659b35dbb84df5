import pytest
from sqlalchemy import text

from app.db.migrations import MIGRATIONS, applied_versions, pending_migrations, run_migrations
from app.db.session import Database

LEGACY_ROWS = [
    (1, "admin", None, "Expert"),
    (2, "pharmacien", None, None),
    (3, "préparateur", 2, "Débutant"),
    (4, "Préparateur", None, None),
    (5, "Formateur", 2, "Intermédiaire"),
    (6, "Preparateur", 2, "Débutant"),
]


@pytest.fixture()
def legacy_engine():
    """Base héritée: rôles non normalisés, niveau nullable."""
    database = Database("sqlite://", slow_query_threshold_ms=0)
    with database.engine.begin() as conn:
        conn.execute(
            text(
                "CREATE TABLE users (id INTEGER PRIMARY KEY, role VARCHAR(32) NOT NULL, "
                "pharmacien_responsable_id INTEGER, skill_level VARCHAR(32))"
            )
        )
        for row in LEGACY_ROWS:
            conn.execute(
                text("INSERT INTO users VALUES (:id, :role, :resp, :level)"),
                dict(zip(("id", "role", "resp", "level"), row)),
            )
    try:
        yield database.engine
    finally:
        database.dispose()


def _users(engine):
    with engine.connect() as conn:
        rows = conn.execute(text("SELECT id, role, pharmacien_responsable_id, skill_level FROM users ORDER BY id"))
        return [tuple(row) for row in rows]


def test_run_migrations_normalizes_legacy_rows(legacy_engine):
    applied = run_migrations(legacy_engine)

    assert applied == [m.version for m in MIGRATIONS]
    assert _users(legacy_engine) == [
        (1, "Admin", None, "Expert"),
        (2, "Pharmacien", None, "Débutant"),
        (3, "Preparateur", 2, "Débutant"),
        (4, "Preparateur", None, "Débutant"),
        (5, "Formateur", None, "Intermédiaire"),
        (6, "Preparateur", 2, "Débutant"),
    ]


def test_subscription_column_is_added_to_legacy_table(legacy_engine):
    run_migrations(legacy_engine)

    with legacy_engine.connect() as conn:
        statuses = conn.execute(text("SELECT DISTINCT subscription_status FROM users")).scalars().all()
    assert statuses == ["free"]


def test_migrations_are_recorded_and_not_reapplied(legacy_engine):
    run_migrations(legacy_engine)
    assert applied_versions(legacy_engine) == {m.version for m in MIGRATIONS}
    assert pending_migrations(legacy_engine) == []
    assert run_migrations(legacy_engine) == []


def test_each_migration_is_idempotent(legacy_engine):
    run_migrations(legacy_engine)
    before = _users(legacy_engine)
    with legacy_engine.begin() as conn:
        changed = [migration.apply(conn) for migration in MIGRATIONS]
    assert changed == [0, 0, 0, 0]
    assert _users(legacy_engine) == before


def test_fresh_schema_has_nothing_to_fix(database):
    assert run_migrations(database.engine) == [m.version for m in MIGRATIONS]


def test_migrate_script(tmp_path, capsys):
    from scripts import migrate

    url = f"sqlite:///{tmp_path / 'cli.db'}"
    assert migrate.main(["--database-url", url, "--dry-run"]) == 0
    assert "0001_canonical_roles" in capsys.readouterr().out

    assert migrate.main(["--database-url", url]) == 0
    assert "4 migration(s)" in capsys.readouterr().out

    assert migrate.main(["--database-url", url, "--dry-run"]) == 0
    assert "Aucune migration en attente." in capsys.readouterr().out
