"""Tests for opening endpoints: browse, detail, create, owner edit and delete."""

import pytest

from api.main import app
from api.schemas.common import ErrorResponse
from tests.support import OPENING_PAYLOAD, apply, auth_headers, create_opening, decide


class TestCreateOpening:

    def test_create_success(self, client, recruiter):
        response = client.post("/openings", json=OPENING_PAYLOAD, headers=auth_headers(recruiter))

        assert response.status_code == 201
        data = response.json()
        assert data["title"] == OPENING_PAYLOAD["title"]
        assert data["status"] == "Open"
        assert data["recruiterId"] == recruiter["user"]["id"]
        assert data["recruiter"]["name"] == "Riya Recruiter"
        assert [(r["name"], r["slots"], r["filled"]) for r in data["roles"]] == [
            ("Backend", 1, 0),
            ("Designer", 1, 0),
        ]

    def test_create_requires_auth(self, client):
        response = client.post("/openings", json=OPENING_PAYLOAD)

        assert response.status_code == 401

    def test_create_requires_roles(self, client, recruiter):
        payload = {**OPENING_PAYLOAD, "roles": []}

        response = client.post("/openings", json=payload, headers=auth_headers(recruiter))

        assert response.status_code == 422

    def test_create_rejects_zero_slots(self, client, recruiter):
        payload = {**OPENING_PAYLOAD, "roles": [{"name": "Backend", "slots": 0}]}

        response = client.post("/openings", json=payload, headers=auth_headers(recruiter))

        assert response.status_code == 422

    def test_create_rejects_unknown_enum_value(self, client, recruiter):
        payload = {**OPENING_PAYLOAD, "type": "Moonlighting"}

        response = client.post("/openings", json=payload, headers=auth_headers(recruiter))

        assert response.status_code == 422


class TestBrowseOpenings:

    def test_list_newest_first(self, client, recruiter):
        first = create_opening(client, recruiter, title="First")
        second = create_opening(client, recruiter, title="Second")

        response = client.get("/openings")

        assert response.status_code == 200
        ids = [item["id"] for item in response.json()]
        assert ids == [second["id"], first["id"]]

    def test_list_is_public(self, client, recruiter):
        create_opening(client, recruiter)

        response = client.get("/openings", headers={"Authorization": "Bearer stale-token"})

        assert response.status_code == 200
        assert len(response.json()) == 1

    @pytest.mark.parametrize("params,expected", [
        ({"type": "Hackathon"}, ["Hack"]),
        ({"type": "Open Source"}, ["OSS"]),
        ({"commitment": "Full-time"}, ["OSS"]),
        ({"location": "Hybrid"}, ["OSS"]),
        ({"status": "Open"}, ["OSS", "Hack"]),
        ({"status": "Closed / Team Formed"}, []),
    ])
    def test_list_filters(self, client, recruiter, params, expected):
        create_opening(client, recruiter, title="Hack")
        create_opening(
            client,
            recruiter,
            title="OSS",
            type="Open Source",
            commitment="Full-time",
            location="Hybrid",
        )

        response = client.get("/openings", params=params)

        assert [item["title"] for item in response.json()] == expected

    def test_list_rejects_unknown_filter_value(self, client):
        assert client.get("/openings", params={"type": "Moonlighting"}).status_code == 422

    def test_detail_includes_recruiter_profile(self, client, recruiter):
        client.patch(
            "/users/me",
            json={
                "bio": "Builder",
                "skills": ["python"],
                "experienceLevel": 6,
                "portfolio": [{"title": "Planner", "url": "https://example.com"}],
            },
            headers=auth_headers(recruiter),
        )
        opening = create_opening(client, recruiter)

        response = client.get(f"/openings/{opening['id']}")

        assert response.status_code == 200
        profile = response.json()["recruiter"]
        assert profile["bio"] == "Builder"
        assert profile["skills"] == ["python"]
        assert profile["experienceLevel"] == 6
        assert [p["title"] for p in profile["portfolio"]] == ["Planner"]

    def test_detail_not_found(self, client):
        response = client.get("/openings/12345")

        assert response.status_code == 404
        assert response.json()["message"] == "Opening not found"


class TestUpdateOpening:

    def test_partial_update(self, client, recruiter):
        opening = create_opening(client, recruiter)

        response = client.patch(
            f"/openings/{opening['id']}",
            json={"title": "Renamed", "tags": ["go"]},
            headers=auth_headers(recruiter),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "Renamed"
        assert data["tags"] == ["go"]
        assert data["description"] == OPENING_PAYLOAD["description"]
        assert len(data["roles"]) == 2

    def test_update_by_non_owner_forbidden(self, client, recruiter, candidate):
        opening = create_opening(client, recruiter)

        response = client.patch(
            f"/openings/{opening['id']}",
            json={"title": "Hijacked"},
            headers=auth_headers(candidate),
        )

        assert response.status_code == 403
        assert client.get(f"/openings/{opening['id']}").json()["title"] == OPENING_PAYLOAD["title"]

    def test_roles_reconciled_by_id(self, client, recruiter, candidate):
        opening = create_opening(client, recruiter)
        backend, designer = opening["roles"]
        application = apply(client, candidate, opening["id"])
        assert decide(client, recruiter, application["id"], "Accepted", backend["id"]).status_code == 200

        response = client.patch(
            f"/openings/{opening['id']}",
            json={"roles": [
                {"id": backend["id"], "name": "Backend Engineer", "slots": 3},
                {"name": "QA", "slots": 1},
            ]},
            headers=auth_headers(recruiter),
        )

        assert response.status_code == 200
        roles = {r["name"]: r for r in response.json()["roles"]}
        assert set(roles) == {"Backend Engineer", "QA"}
        # Edited in place: same id, filled count kept
        assert roles["Backend Engineer"]["id"] == backend["id"]
        assert roles["Backend Engineer"]["filled"] == 1
        assert roles["QA"]["filled"] == 0
        assert designer["id"] not in {r["id"] for r in roles.values()}

    def test_slots_below_filled_rejected(self, client, recruiter, candidate, second_candidate):
        opening = create_opening(client, recruiter, roles=[{"name": "Backend", "slots": 2}])
        backend = opening["roles"][0]
        for applicant in (candidate, second_candidate):
            application = apply(client, applicant, opening["id"])
            decide(client, recruiter, application["id"], "Accepted", backend["id"])

        response = client.patch(
            f"/openings/{opening['id']}",
            json={"roles": [{"id": backend["id"], "name": "Backend", "slots": 1}]},
            headers=auth_headers(recruiter),
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_STATE"
        role = client.get(f"/openings/{opening['id']}").json()["roles"][0]
        assert (role["slots"], role["filled"]) == (2, 2)

    def test_unknown_role_id_rejected(self, client, recruiter):
        opening = create_opening(client, recruiter)
        other = create_opening(client, recruiter, title="Other")

        response = client.patch(
            f"/openings/{opening['id']}",
            json={"roles": [{"id": other["roles"][0]["id"], "name": "Stolen", "slots": 1}]},
            headers=auth_headers(recruiter),
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_STATE"
        assert len(client.get(f"/openings/{opening['id']}").json()["roles"]) == 2

    def test_empty_roles_rejected(self, client, recruiter):
        opening = create_opening(client, recruiter)

        response = client.patch(
            f"/openings/{opening['id']}",
            json={"roles": []},
            headers=auth_headers(recruiter),
        )

        assert response.status_code == 422

    def test_status_can_be_set(self, client, recruiter):
        opening = create_opening(client, recruiter)

        response = client.patch(
            f"/openings/{opening['id']}",
            json={"status": "Closed / Team Formed"},
            headers=auth_headers(recruiter),
        )

        assert response.json()["status"] == "Closed / Team Formed"


class TestDeleteOpening:

    def test_soft_delete(self, client, recruiter):
        opening = create_opening(client, recruiter)

        response = client.delete(f"/openings/{opening['id']}", headers=auth_headers(recruiter))

        assert response.status_code == 200
        assert response.json() == {"message": "Opening deleted successfully"}
        assert client.get(f"/openings/{opening['id']}").status_code == 404
        assert client.get("/openings").json() == []

    def test_delete_by_non_owner_forbidden(self, client, recruiter, candidate):
        opening = create_opening(client, recruiter)

        response = client.delete(f"/openings/{opening['id']}", headers=auth_headers(candidate))

        assert response.status_code == 403
        assert client.get(f"/openings/{opening['id']}").status_code == 200

    def test_delete_twice_not_found(self, client, recruiter):
        opening = create_opening(client, recruiter)
        client.delete(f"/openings/{opening['id']}", headers=auth_headers(recruiter))

        response = client.delete(f"/openings/{opening['id']}", headers=auth_headers(recruiter))

        assert response.status_code == 404


class TestErrorContract:

    def test_not_found_body_matches_error_schema(self, client):
        response = client.get("/openings/999")

        assert response.status_code == 404
        error = ErrorResponse.model_validate(response.json())
        assert error.code == "NOT_FOUND"
        assert error.path == "/openings/999"
        assert error.method == "GET"

    def test_openapi_documents_error_schema(self):
        schema = app.openapi()

        assert "ErrorResponse" in schema["components"]["schemas"]
        responses = schema["paths"]["/openings/{opening_id}"]["patch"]["responses"]
        for status_code in ("403", "404"):
            assert responses[status_code]["content"]["application/json"]["schema"] == {
                "$ref": "#/components/schemas/ErrorResponse"
            }
