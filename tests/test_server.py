"""HTTP smoke tests for the FastAPI server.

The database is replaced through ``dependency_overrides``: the graph store
is the in-memory intake form and the config repository is a dict-backed
fake, so every request runs the real routes, gates, and error handlers.
"""

import pytest
from fastapi.testclient import TestClient

from survey_flow.constants import CONFIG_EDITING_LOCKED, CONFIG_PUBLISHED, DEFAULT_CONFIG
from survey_flow_server.app import create_app
from survey_flow_server.config import ServerSettings
from survey_flow_server.dependencies import get_config_repo, get_db, get_graph_store

API = "/api/v1"


class FakeConfigRepository:
    """Dict-backed stand-in for FormConfigRepository (same signatures)."""

    def __init__(self):
        self.values = dict(DEFAULT_CONFIG)

    async def get_all(self, db):
        return dict(self.values)

    async def get_value(self, db, key):
        return self.values.get(key)

    async def set_value(self, db, key, value):
        self.values[key] = value

    async def is_published(self, db):
        return self.values[CONFIG_PUBLISHED] == "true"

    async def is_editing_locked(self, db):
        return self.values[CONFIG_EDITING_LOCKED] == "true"


async def _no_db():
    yield None


@pytest.fixture
def config_repo():
    return FakeConfigRepository()


@pytest.fixture
def client(intake_store, config_repo):
    app = create_app(ServerSettings(health_check_db=False))
    app.dependency_overrides[get_db] = _no_db
    app.dependency_overrides[get_graph_store] = lambda: intake_store
    app.dependency_overrides[get_config_repo] = lambda: config_repo
    with TestClient(app) as c:
        yield c


@pytest.fixture
def published(config_repo):
    config_repo.values[CONFIG_PUBLISHED] = "true"
    return config_repo


# =====================================================================
# Reads
# =====================================================================


class TestReadEndpoints:

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_list_sections(self, client):
        resp = client.get(f"{API}/sections")
        assert resp.status_code == 200
        sections = resp.json()
        assert [s["id"] for s in sections] == [1, 2, 3]
        first = sections[0]
        assert [q["id"] for q in first["questions"]] == [10, 11]
        assert [a["id"] for a in first["questions"][0]["answers"]] == [5, 6]
        assert first["next"] == {"type": "CONDITION", "question": 10, "answers": {"5": 2, "6": 3}}
        assert sections[1]["next"] == {"type": "SECTION", "section": 3}
        assert sections[2]["next"] == {"type": "NONE"}

    def test_first_section(self, client):
        resp = client.get(f"{API}/sections/first")
        assert resp.status_code == 200
        assert resp.json()["id"] == 1

    def test_unknown_section(self, client):
        resp = client.get(f"{API}/sections/99")
        assert resp.status_code == 404
        body = resp.json()
        assert body["error"] == "ResourceNotFound"
        assert body["section_id"] == 99


# =====================================================================
# Editing gates and authoring
# =====================================================================


class TestAuthoringEndpoints:

    def test_create_section(self, client):
        resp = client.post(f"{API}/sections", json={"title": "Follow-up"})
        assert resp.status_code == 201
        assert resp.json()["id"] == 4

    def test_published_form_is_read_only(self, client, published):
        resp = client.post(f"{API}/sections", json={"title": "Follow-up"})
        assert resp.status_code == 403
        assert resp.json()["error"] == "FormPublished"

    def test_locked_form_is_read_only(self, client, config_repo):
        config_repo.values[CONFIG_EDITING_LOCKED] = "true"
        resp = client.delete(f"{API}/sections/3")
        assert resp.status_code == 423

    def test_set_conditional_next(self, client):
        body = {
            "type": "CONDITION",
            "condition": {"question": 24, "answers": {"25": 1, "26": 3, "other": 3}},
        }
        resp = client.put(f"{API}/sections/2/next", json=body)
        assert resp.status_code == 200
        assert resp.json()["next"] == {
            "type": "CONDITION",
            "question": 24,
            "answers": {"25": 1, "26": 3, "other": 3},
        }

    def test_clear_direct_next(self, client):
        resp = client.put(f"{API}/sections/2/next", json={"type": "SECTION", "section": None})
        assert resp.status_code == 200
        assert resp.json()["next"] == {"type": "NONE"}

    def test_self_loop_rejected(self, client):
        resp = client.put(f"{API}/sections/2/next", json={"type": "SECTION", "section": 2})
        assert resp.status_code == 400
        assert resp.json()["error"] == "SameElement"

    def test_incomplete_mapping_rejected(self, client):
        body = {"type": "CONDITION", "condition": {"question": 10, "answers": {"5": 2}}}
        resp = client.put(f"{API}/sections/1/next", json=body)
        assert resp.status_code == 400
        assert resp.json()["error"] == "WrongData"

    def test_unknown_next_type(self, client):
        resp = client.put(f"{API}/sections/2/next", json={"type": "JUMP", "section": 3})
        assert resp.status_code == 422

    def test_question_lifecycle(self, client):
        base = f"{API}/sections/2/questions"
        resp = client.post(base, json={"title": "Brand", "type": "SINGLE_CHOICE", "previous_id": 20})
        assert resp.status_code == 201
        qid = resp.json()["id"]

        resp = client.post(f"{base}/{qid}/answers", json={"title": "Acme"})
        assert resp.status_code == 201

        resp = client.patch(f"{base}/{qid}/order", json={"previous_id": None})
        assert resp.status_code == 204
        order = [q["id"] for q in client.get(f"{API}/sections/2").json()["questions"]]
        assert order == [qid, 20, 24]

        resp = client.patch(f"{base}/{qid}", json={"title": "Which brand?"})
        assert resp.json()["title"] == "Which brand?"

        assert client.delete(f"{base}/{qid}").status_code == 204

    def test_clear_regex_with_null(self, client):
        resp = client.patch(f"{API}/sections/1/questions/11", json={"regex": None})
        assert resp.status_code == 200
        assert resp.json()["regex"] is None

    def test_conditioning_question_cannot_be_deleted(self, client):
        resp = client.delete(f"{API}/sections/1/questions/10")
        assert resp.status_code == 400


# =====================================================================
# Publishing and submissions
# =====================================================================


class TestSubmissionEndpoints:

    WALK = [
        {"section_id": 1, "question_id": 10, "answer_id": 6},
        {"section_id": 1, "question_id": 11, "other": "42"},
        {"section_id": 3, "question_id": 30, "other": "Thanks"},
    ]

    def test_unpublished_form_rejects_submissions(self, client):
        resp = client.post(f"{API}/submissions/validate", json={"records": self.WALK})
        assert resp.status_code == 403
        assert resp.json()["error"] == "FormNotPublished"

    def test_valid_submission(self, client, published):
        resp = client.post(f"{API}/submissions/validate", json={"records": self.WALK})
        assert resp.status_code == 200
        body = resp.json()
        assert body["valid"] is True
        assert body["complete"] is True
        assert body["sections"] == [1, 3]

    def test_regex_violation(self, client, published):
        records = [dict(r) for r in self.WALK]
        records[1]["other"] = "abc"
        resp = client.post(f"{API}/submissions/validate", json={"records": records})
        assert resp.status_code == 400
        body = resp.json()
        assert body["error"] == "BadRequest"
        assert body["question_id"] == 11

    def test_integrity_error_hides_details(self, client, published, intake_store):
        intake_store.put_direct_next(1, 3)
        resp = client.post(f"{API}/submissions/validate", json={"records": self.WALK[:1]})
        assert resp.status_code == 500
        assert resp.json()["detail"] == "The form definition is inconsistent"

    def test_empty_submission_rejected(self, client, published):
        resp = client.post(f"{API}/submissions/validate", json={"records": []})
        assert resp.status_code == 422

    def test_publish_runs_checks(self, client, config_repo):
        resp = client.put(f"{API}/config/published", json={"published": True})
        assert resp.status_code == 200
        assert resp.json() == {"published": True, "editing_locked": False}
        assert config_repo.values[CONFIG_PUBLISHED] == "true"

    def test_publish_refused_for_inconsistent_form(self, client, config_repo):
        client.post(f"{API}/sections", json={"title": "Orphan"})
        resp = client.put(f"{API}/config/published", json={"published": True})
        assert resp.status_code == 400
        assert config_repo.values[CONFIG_PUBLISHED] == "false"

    def test_publish_refused_while_locked(self, client):
        client.put(f"{API}/config/editing-lock", json={"editing_locked": True})
        resp = client.put(f"{API}/config/published", json={"published": True})
        assert resp.status_code == 423
        assert client.get(f"{API}/config").json()["editing_locked"] is True
