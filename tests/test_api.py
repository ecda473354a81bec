import httpx
import pytest
from fastapi.testclient import TestClient

import slangdict.config as config
from app import auth
from app.auth import SessionUser, get_current_user
from app.main import create_app, status_code_for
from app.routes import health as health_routes
from slangdict.errors import (
    AuthenticationRequired,
    Conflict,
    InternalFailure,
    InvalidArgument,
    NotFound,
    PermissionDenied,
)
from slangdict.models import UserRole


@pytest.fixture
def api(server_db):
    app = create_app(use_lifespan=False)
    state = {"user": None}
    app.dependency_overrides[get_current_user] = lambda: state["user"]

    def login(user_id, name=None, role="user"):
        state["user"] = SessionUser(id=user_id, name=name or user_id, role=role)

    def logout():
        state["user"] = None

    client = TestClient(app)
    client.login = login
    client.logout = logout
    return client


@pytest.mark.parametrize(
    "error, status_code",
    [
        (AuthenticationRequired("x"), 401),
        (PermissionDenied("x"), 403),
        (NotFound("x"), 404),
        (InvalidArgument("x"), 400),
        (Conflict("x"), 409),
        (InternalFailure("x"), 500),
    ],
)
def test_status_code_mapping(error, status_code):
    assert status_code_for(error) == status_code


def test_vote_requires_authentication(api, make_term):
    _, (definition_id,) = make_term()

    response = api.post("/api/vote", json={"definitionId": definition_id, "voteType": "up"})

    assert response.status_code == 401
    assert response.json()["error"] == "authentication_required"


def test_vote_flow(api, make_term):
    _, (definition_id,) = make_term()
    api.login("alice")

    response = api.post("/api/vote", json={"definitionId": definition_id, "voteType": "up"})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert (body["upvotes"], body["downvotes"]) == (1, 0)

    response = api.post("/api/vote", json={"definitionId": definition_id, "voteType": "remove"})
    assert response.json()["upvotes"] == 0


def test_vote_rejects_bad_input(api, make_term):
    _, (definition_id,) = make_term()
    api.login("alice")

    bad_action = api.post("/api/vote", json={"definitionId": definition_id, "voteType": "maybe"})
    assert bad_action.status_code == 400
    assert bad_action.json() == {
        "error": "invalid_argument",
        "message": "action must be one of: up|down|remove",
        "field": "action",
    }

    missing = api.post("/api/vote", json={"definitionId": 999, "voteType": "up"})
    assert missing.status_code == 404

    no_id = api.post("/api/vote", json={"voteType": "up"})
    assert no_id.status_code == 400

    not_an_object = api.post("/api/vote", json=[1, 2])
    assert not_an_object.status_code == 400
    assert not_an_object.json()["error"] == "invalid_argument"


def test_term_detail_shows_current_vote(api, make_term):
    _, (definition_id,) = make_term(slug="1")
    api.login("alice")
    api.post("/api/vote", json={"definitionId": definition_id, "voteType": "down"})

    detail = api.get("/api/terms/1").json()
    assert detail["term"]["definitions"][0]["user_vote"] == "down"

    api.logout()
    detail = api.get("/api/terms/1").json()
    assert detail["term"]["definitions"][0]["user_vote"] is None

    assert api.get("/api/terms/404").status_code == 404
    assert api.get("/api/terms").json()["total"] == 1


def test_comment_endpoints(api, make_term):
    term_id, _ = make_term()
    api.login("alice")

    created = api.post(f"/api/terms/{term_id}/comments", json={"content": "Τέλειο"})
    assert created.status_code == 201
    parent_id = created.json()["id"]

    api.login("bob")
    reply = api.post(f"/api/terms/{term_id}/comments", json={"content": "Ναι", "parentId": parent_id})
    assert reply.status_code == 201

    vote = api.post(f"/api/comments/{parent_id}/vote", json={"voteType": "up"})
    assert vote.json()["upvotes"] == 1

    forbidden = api.delete(f"/api/comments/{parent_id}")
    assert forbidden.status_code == 403
    assert forbidden.json()["error"] == "forbidden"

    api.login("alice")
    assert api.delete(f"/api/comments/{parent_id}").json()["status"] == "deleted"

    thread = api.get(f"/api/terms/{term_id}/comments").json()
    assert thread["count"] == 2
    assert thread["comments"][0]["content"] is None
    assert thread["comments"][0]["replies"][0]["content"] == "Ναι"


def test_moderator_delete_over_http(api, make_term):
    term_id, _ = make_term()
    api.login("alice")
    comment_id = api.post(f"/api/terms/{term_id}/comments", json={"content": "spam"}).json()["id"]

    api.login("mod", role=UserRole.moderator.value)
    assert api.delete(f"/api/comments/{comment_id}").status_code == 200


def test_bookmark_endpoints(api, make_term):
    term_id, _ = make_term()

    assert api.get("/api/bookmarks").status_code == 401

    api.login("alice")
    assert api.post(f"/api/bookmarks/{term_id}").json()["status"] == "created"
    assert api.post(f"/api/bookmarks/{term_id}").json()["status"] == "exists"
    assert api.get("/api/bookmarks").json()["count"] == 1
    assert api.delete(f"/api/bookmarks/{term_id}").json()["status"] == "removed"


def test_tag_endpoints(api):
    assert api.get("/api/tags").json()["count"] == 0
    missing = api.get("/api/tags/nothing")
    assert missing.status_code == 404
    assert missing.json()["field"] == "slug"


def test_health(api, monkeypatch):
    monkeypatch.setattr(health_routes, "_get_schema_revisions", lambda engine: ("0001", "0001"))
    response = api.get("/health")
    assert response.status_code == 200
    assert response.json()["database"]["schema_up_to_date"] is True

    monkeypatch.setattr(health_routes, "_get_schema_revisions", lambda engine: (None, "0001"))
    assert api.get("/health").status_code == 503


def test_session_lookup(monkeypatch):
    seen = {}

    def handler(request):
        seen["authorization"] = request.headers.get("authorization")
        if request.headers.get("authorization") == "Bearer good":
            return httpx.Response(200, json={"user": {"id": "u-1", "name": "Νίκος", "role": "admin"}})
        return httpx.Response(401, json={"error": "unauthorized"})

    monkeypatch.setattr(config, "AUTH_SESSION_URL", "https://auth.example.com/api/auth/get-session")
    monkeypatch.setattr(auth, "http_client", httpx.Client(transport=httpx.MockTransport(handler)))
    try:
        user = auth.lookup_session("good")
        assert user == SessionUser(id="u-1", name="Νίκος", role="admin")
        assert seen["authorization"] == "Bearer good"
        assert auth.lookup_session("bad") is None
    finally:
        auth.cleanup_http_client()


def test_session_lookup_disabled_without_url(monkeypatch):
    monkeypatch.setattr(config, "AUTH_SESSION_URL", None)
    assert auth.lookup_session("token") is None


def test_session_payload_parsing():
    assert auth._parse_session_payload(None) is None
    assert auth._parse_session_payload({"user": None}) is None
    assert auth._parse_session_payload({"user": {"id": ""}}) is None
    assert auth._parse_session_payload({"user": {"id": "u-2"}}) == SessionUser(id="u-2", name="u-2")
