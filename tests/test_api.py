"""Tests HTTP de bout en bout (TestClient) sur une base SQLite en mémoire."""

import json

import pytest

from app.models.content.memofiche_model import MemoFiche
from app.models.content.taxonomy_model import Theme
from app.models.user.user_model import SkillLevel, User, UserRole
from app.schemas.content.memofiche_schema import MemoFicheCreate
from tests.utils import DEFAULT_PASSWORD, auth_headers, create_memofiche, create_user, fiche_payload


@pytest.fixture()
def seed(database):
    """Exécute ``fn(db)`` dans une session fermée aussitôt (la connexion mémoire est partagée)."""

    def _run(fn):
        with database.session() as db:
            return fn(db)

    return _run


@pytest.fixture()
def users(seed):
    def _create(db):
        admin = create_user(db, username="admin1", email="admin@example.com", role=UserRole.ADMIN, password=DEFAULT_PASSWORD)
        formateur = create_user(db, username="form1", email="form@example.com", role=UserRole.FORMATEUR)
        pharmacien = create_user(db, username="pharma1", email="pharma@example.com", role=UserRole.PHARMACIEN)
        prep = create_user(
            db,
            username="prep1",
            email="prep@example.com",
            role=UserRole.PREPARATEUR,
            pharmacien_responsable_id=pharmacien.id,
        )
        created = {"admin": admin, "formateur": formateur, "pharmacien": pharmacien, "preparateur": prep}
        for user in created.values():
            db.refresh(user)
        return created

    return seed(_create)


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.text == "OK"


def test_catalog_is_seeded_and_sorted(client):
    data = client.get("/api/data").json()
    noms = [theme["Nom"] for theme in data["themes"]]
    assert len(noms) == 7
    assert noms == sorted(noms)
    assert len(data["systemesOrganes"]) == 8
    assert data["memofiches"] == []


def test_register_and_login_flow(client):
    response = client.post(
        "/api/register",
        json={"email": "new@example.com", "username": "newbie", "password": "motdepasse", "role": "pharmacien"},
    )
    assert response.status_code == 201
    body = response.json()
    assert body["role"] == "Pharmacien"
    assert body["skillLevel"] == "Débutant"
    assert "hashed_password" not in body and "password" not in body

    login = client.post("/api/login", json={"identifier": "newbie", "password": "motdepasse"})
    assert login.status_code == 200
    assert login.json()["capabilities"]["canGenerateMemoFiche"] is False

    token = login.json()["token"]
    space = client.get("/api/learner-space", headers={"Authorization": f"Bearer {token}"})
    assert space.status_code == 200
    assert space.json()["username"] == "newbie"
    assert space.json()["lastLogin"] is not None


def test_register_duplicate_is_409(client, users):
    response = client.post(
        "/api/register",
        json={"email": "pharma@example.com", "username": "autre", "password": "motdepasse", "role": "Pharmacien"},
    )
    assert response.status_code == 409
    assert response.json()["kind"] == "conflict"


def test_register_preparateur_without_pharmacien_is_400(client):
    response = client.post(
        "/api/register",
        json={"email": "p@example.com", "username": "prep", "password": "motdepasse", "role": "Préparateur"},
    )
    assert response.status_code == 400
    assert response.json()["kind"] == "validation_error"


def test_public_register_cannot_claim_admin(client):
    response = client.post(
        "/api/register",
        json={"email": "x@example.com", "username": "sneaky", "password": "motdepasse", "role": "Admin"},
    )
    assert response.status_code == 403


def test_malformed_body_is_validation_error(client):
    response = client.post("/api/register", json={"email": "pas-un-email"})
    assert response.status_code == 400
    assert response.json()["kind"] == "validation_error"


def test_bad_login_is_401(client, users):
    response = client.post("/api/login", json={"identifier": "admin1", "password": "faux"})
    assert response.status_code == 401
    assert response.json() == {"kind": "invalid_credentials", "message": "Identifiant ou mot de passe incorrect."}


def test_missing_or_invalid_token(client):
    assert client.get("/api/learner-space").status_code == 401
    response = client.get("/api/learner-space", headers={"Authorization": "Bearer nimportequoi"})
    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"
    assert response.json()["kind"] == "invalid_token"


def _without_server_fields(fiche: dict) -> dict:
    data = {key: value for key, value in fiche.items() if key not in ("id", "createdAt", "updatedAt")}
    data["theme"] = {k: v for k, v in data["theme"].items() if k != "id"}
    data["systeme_organe"] = {k: v for k, v in data["systeme_organe"].items() if k != "id"}
    return data


def test_dermatologie_scenario(client, users, seed):
    second_admin = seed(
        lambda db: create_user(db, username="admin2", email="admin2@example.com", role=UserRole.ADMIN)
    )

    first = client.post("/api/memofiches", json=fiche_payload(), headers=auth_headers(users["admin"]))
    second = client.post(
        "/api/memofiches",
        json=fiche_payload(title="Psoriasis"),
        headers=auth_headers(second_admin),
    )
    assert first.status_code == second.status_code == 201

    theme_ids = seed(lambda db: [t.id for t in db.query(Theme).filter(Theme.nom == "Dermatologie")])
    assert len(theme_ids) == 1
    assert first.json()["theme"]["id"] == second.json()["theme"]["id"] == theme_ids[0]
    assert seed(lambda db: db.query(MemoFiche).count()) == 2

    denied = client.delete(f"/api/memofiches/{first.json()['id']}", headers=auth_headers(users["preparateur"]))
    assert denied.status_code == 403
    assert denied.json()["kind"] == "forbidden"
    assert seed(lambda db: db.query(MemoFiche).count()) == 2


def test_created_fiche_round_trips_through_catalog(client, users):
    payload = fiche_payload()
    created = client.post("/api/memofiches", json=payload, headers=auth_headers(users["formateur"]))
    assert created.status_code == 201

    catalog = client.get("/api/data").json()
    [entry] = [f for f in catalog["memofiches"] if f["id"] == created.json()["id"]]
    expected = MemoFicheCreate.model_validate(payload).model_dump(by_alias=True, mode="json")

    assert _without_server_fields(entry) == _without_server_fields(expected)
    assert entry == client.get(f"/api/memofiches/{entry['id']}").json()
    assert "Dermatologie" in [theme["Nom"] for theme in catalog["themes"]]

def test_update_and_delete_permissions(client, users):
    fiche = client.post("/api/memofiches", json=fiche_payload(), headers=auth_headers(users["admin"])).json()

    updated = client.put(
        f"/api/memofiches/{fiche['id']}",
        json={"id": "autre", "title": "Eczéma (mise à jour)"},
        headers=auth_headers(users["formateur"]),
    )
    assert updated.status_code == 200
    assert updated.json()["id"] == fiche["id"]
    assert updated.json()["title"] == "Eczéma (mise à jour)"

    assert client.delete(f"/api/memofiches/{fiche['id']}", headers=auth_headers(users["formateur"])).status_code == 403
    assert client.delete(f"/api/memofiches/{fiche['id']}", headers=auth_headers(users["admin"])).status_code == 204
    assert client.get(f"/api/memofiches/{fiche['id']}").status_code == 404
    assert client.delete(f"/api/memofiches/{fiche['id']}", headers=auth_headers(users["admin"])).status_code == 404


def test_learning_endpoints(client, users):
    headers = auth_headers(users["preparateur"])
    for fiche_id in ("a", "b", "c", "c"):
        response = client.post("/api/users/me/read-fiches", json={"ficheId": fiche_id}, headers=headers)
        assert response.status_code == 200
    assert response.json()["readFicheIds"] == ["a", "b", "c"]

    result = client.post("/api/users/me/quiz-history", json={"quizId": "a", "score": 100}, headers=headers).json()
    assert set(result["newBadges"]) == {"premier-quiz", "score-parfait"}
    assert set(result["badges"]) == {"lecteur-assidu", "premier-quiz", "score-parfait"}
    assert result["quizHistory"][0]["quizId"] == "a"

    badges = client.get("/api/badges", headers=headers).json()
    earned = {badge["id"] for badge in badges if badge["earned"]}
    assert earned == {"lecteur-assidu", "premier-quiz", "score-parfait"}

    out_of_range = client.post("/api/users/me/quiz-history", json={"quizId": "a", "score": 140}, headers=headers)
    assert out_of_range.status_code == 400


def test_five_quizzes_promote_through_api(client, users, seed):
    headers = auth_headers(users["pharmacien"])
    for _ in range(5):
        state = client.post("/api/users/me/quiz-history", json={"quizId": "x", "score": 60}, headers=headers).json()
    assert state["skillLevel"] == SkillLevel.INTERMEDIAIRE.value

    level = seed(lambda db: db.get(User, users["pharmacien"].id).skill_level)
    assert level == SkillLevel.INTERMEDIAIRE


def test_capabilities_endpoint(client, users):
    caps = client.get("/api/users/me/capabilities", headers=auth_headers(users["formateur"])).json()
    assert caps["canGenerateMemoFiche"] is True
    assert caps["canDeleteMemoFiches"] is False


def test_deleted_user_token_is_rejected(client, users):
    headers = auth_headers(users["preparateur"])
    response = client.delete(f"/api/admin/users/{users['preparateur'].id}", headers=auth_headers(users["admin"]))
    assert response.status_code == 204
    assert client.get("/api/learner-space", headers=headers).status_code == 401


def test_admin_user_management(client, users):
    admin_headers = auth_headers(users["admin"])

    created = client.post(
        "/api/admin/users",
        json={"email": "f2@example.com", "username": "form2", "password": "motdepasse", "role": "Formateur"},
        headers=admin_headers,
    )
    assert created.status_code == 201

    formateurs = client.get("/api/admin/formateurs", headers=admin_headers).json()
    assert {f["username"] for f in formateurs} == {"form1", "form2"}

    conflict = client.put(
        f"/api/admin/users/{created.json()['id']}",
        json={"email": "pharma@example.com"},
        headers=admin_headers,
    )
    assert conflict.status_code == 409

    promoted = client.put(
        f"/api/admin/users/{users['preparateur'].id}",
        json={"role": "Pharmacien"},
        headers=admin_headers,
    )
    assert promoted.status_code == 200
    assert promoted.json()["role"] == "Pharmacien"
    assert promoted.json()["pharmacienResponsableId"] is None

    self_demote = client.put(
        f"/api/admin/users/{users['admin'].id}", json={"role": "Formateur"}, headers=admin_headers
    )
    assert self_demote.status_code == 400
    assert client.delete(f"/api/admin/users/{users['admin'].id}", headers=admin_headers).status_code == 400

    assert client.get("/api/admin/users", headers=auth_headers(users["formateur"])).status_code == 403


def test_subordinate_stats(client, users, seed):
    prep_headers = auth_headers(users["preparateur"])
    client.post("/api/users/me/read-fiches", json={"ficheId": "a"}, headers=prep_headers)
    client.post("/api/users/me/quiz-history", json={"quizId": "a", "score": 50}, headers=prep_headers)
    client.post("/api/users/me/quiz-history", json={"quizId": "a", "score": 75}, headers=prep_headers)

    other = seed(
        lambda db: create_user(db, username="pharma2", email="pharma2@example.com", role=UserRole.PHARMACIEN)
    )

    rows = client.get("/api/pharmacien/preparateurs", headers=auth_headers(users["pharmacien"])).json()
    assert len(rows) == 1
    assert rows[0]["username"] == "prep1"
    assert rows[0]["fichesReadCount"] == 1
    assert rows[0]["quizCount"] == 2
    assert rows[0]["averageQuizScore"] == 62.5

    # Le filtre pharmacienId est ignoré pour un pharmacien.
    assert client.get(
        "/api/pharmacien/preparateurs",
        params={"pharmacienId": users["pharmacien"].id},
        headers=auth_headers(other),
    ).json() == []

    admin_rows = client.get("/api/pharmacien/preparateurs", headers=auth_headers(users["admin"])).json()
    assert [row["id"] for row in admin_rows] == [users["preparateur"].id]

    assert client.get("/api/pharmacien/preparateurs", headers=prep_headers).status_code == 403


def test_ai_coach_suggest_challenge(client, users, seed, fake_provider):
    seed(lambda db: create_memofiche(db, id="rhume", title="Rhume"))
    fake_provider.reply = json.dumps(
        {"type": "fiche", "ficheId": "rhume", "title": "Rhume", "reasoning": "Commencez par les bases."}
    )

    response = client.post("/api/ai-coach/suggest-challenge", json={}, headers=auth_headers(users["preparateur"]))

    assert response.status_code == 200
    assert response.json() == {
        "type": "fiche",
        "ficheId": "rhume",
        "title": "Rhume",
        "reasoning": "Commencez par les bases.",
    }


def test_ai_coach_bad_reply_is_500(client, users, seed, fake_provider):
    seed(lambda db: create_memofiche(db, id="rhume", title="Rhume"))
    fake_provider.reply = "désolé, je ne peux pas"

    response = client.post(
        "/api/ai-coach/find-by-objective",
        json={"objective": "Mieux conseiller le rhume"},
        headers=auth_headers(users["pharmacien"]),
    )

    assert response.status_code == 500
    assert response.json()["kind"] == "upstream_error"


def test_ai_coach_requires_auth(client):
    assert client.post("/api/ai-coach/suggest-challenge", json={}).status_code == 401


def test_memofiche_count_unchanged_after_forbidden_create(client, users, seed):
    client.post("/api/memofiches", json=fiche_payload(), headers=auth_headers(users["pharmacien"]))
    assert seed(lambda db: db.query(MemoFiche).count()) == 0


def test_admin_reads_user_and_sets_subscription(client, users):
    admin_headers = auth_headers(users["admin"])
    url = f"/api/admin/users/{users['pharmacien'].id}"

    fetched = client.get(url, headers=admin_headers)
    assert fetched.status_code == 200
    assert fetched.json()["username"] == "pharma1"
    assert fetched.json()["subscriptionStatus"] == "free"

    updated = client.put(url, json={"subscriptionStatus": "premium"}, headers=admin_headers)
    assert updated.status_code == 200
    assert updated.json()["subscriptionStatus"] == "premium"
    assert updated.json()["role"] == "Pharmacien"

    assert client.put(url, json={"subscriptionStatus": "gold"}, headers=admin_headers).status_code == 400
    assert client.get("/api/admin/users/4242", headers=admin_headers).status_code == 404
    assert client.get(url, headers=auth_headers(users["pharmacien"])).status_code == 403


def test_pharmacien_with_preparateur_cannot_be_demoted(client, users):
    response = client.put(
        f"/api/admin/users/{users['pharmacien'].id}",
        json={"role": "Formateur"},
        headers=auth_headers(users["admin"]),
    )
    assert response.status_code == 409
    assert response.json()["kind"] == "conflict"


def test_register_rejects_username_with_at_sign(client):
    response = client.post(
        "/api/register",
        json={"email": "x@example.com", "username": "y@example.com", "password": "motdepasse", "role": "Pharmacien"},
    )
    assert response.status_code == 400
    assert response.json()["kind"] == "validation_error"


def test_chatbot_message(client, users, fake_provider):
    fake_provider.reply = "Conseillez un émollient deux fois par jour."

    response = client.post(
        "/api/chatbot/message",
        json={"message": "Que conseiller pour une peau sèche ?"},
        headers=auth_headers(users["preparateur"]),
    )

    assert response.status_code == 200
    assert response.json() == {"response": "Conseillez un émollient deux fois par jour."}
    assert client.post("/api/chatbot/message", json={"message": "Bonjour"}).status_code == 401


def test_chatbot_unconfigured_is_503(client, users, fake_provider):
    fake_provider.configured = False

    response = client.post(
        "/api/chatbot/message",
        json={"message": "Bonjour"},
        headers=auth_headers(users["pharmacien"]),
    )

    assert response.status_code == 503
    assert response.json()["kind"] == "service_unavailable"
