"""Tests for user profile endpoints."""

from tests.support import apply, auth_headers, create_opening


class TestPublicProfile:

    def test_profile_hides_email(self, client, recruiter):
        response = client.get(f"/users/{recruiter['user']['id']}")

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Riya Recruiter"
        assert "email" not in data

    def test_profile_lists_live_openings(self, client, recruiter):
        kept = create_opening(client, recruiter, title="Kept")
        dropped = create_opening(client, recruiter, title="Dropped")
        client.delete(f"/openings/{dropped['id']}", headers=auth_headers(recruiter))

        openings = client.get(f"/users/{recruiter['user']['id']}").json()["openings"]

        assert [o["id"] for o in openings] == [kept["id"]]
        assert openings[0]["recruiterId"] == recruiter["user"]["id"]

    def test_unknown_user(self, client):
        response = client.get("/users/9999")

        assert response.status_code == 404
        assert response.json()["message"] == "User not found"


class TestUpdateProfile:

    def test_partial_update(self, client, candidate):
        response = client.patch(
            "/users/me",
            json={
                "bio": "Full-stack dev",
                "skills": ["python", "svelte"],
                "experienceLevel": 7,
                "availability": 10,
                "socialLinks": {"github": "https://github.com/casey"},
            },
            headers=auth_headers(candidate),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["bio"] == "Full-stack dev"
        assert data["skills"] == ["python", "svelte"]
        assert data["experienceLevel"] == 7
        assert data["availability"] == 10
        assert data["socialLinks"]["github"] == "https://github.com/casey"
        # Untouched fields keep their values
        assert data["name"] == "Casey Candidate"
        assert data["email"] == "candidate@example.com"

    def test_portfolio_replaced(self, client, candidate):
        headers = auth_headers(candidate)
        client.patch(
            "/users/me",
            json={"portfolio": [{"title": "Old one"}, {"title": "Old two"}]},
            headers=headers,
        )

        response = client.patch(
            "/users/me",
            json={"portfolio": [{"title": "New", "url": "https://example.com/new"}]},
            headers=headers,
        )

        assert [p["title"] for p in response.json()["portfolio"]] == ["New"]
        public = client.get(f"/users/{candidate['user']['id']}").json()
        assert [p["title"] for p in public["portfolio"]] == ["New"]

    def test_portfolio_kept_when_absent(self, client, candidate):
        headers = auth_headers(candidate)
        client.patch("/users/me", json={"portfolio": [{"title": "Keep me"}]}, headers=headers)

        response = client.patch("/users/me", json={"bio": "hi"}, headers=headers)

        assert [p["title"] for p in response.json()["portfolio"]] == ["Keep me"]

    def test_experience_level_bounds(self, client, candidate):
        response = client.patch(
            "/users/me",
            json={"experienceLevel": 11},
            headers=auth_headers(candidate),
        )

        assert response.status_code == 422

    def test_requires_auth(self, client):
        assert client.patch("/users/me", json={"bio": "x"}).status_code == 401


class TestMyApplications:

    def test_newest_first_with_opening_summary(self, client, recruiter, candidate):
        first = create_opening(client, recruiter, title="First")
        second = create_opening(client, recruiter, title="Second")
        apply(client, candidate, first["id"])
        apply(client, candidate, second["id"])

        response = client.get("/users/me/applications", headers=auth_headers(candidate))

        assert response.status_code == 200
        data = response.json()
        assert [a["opening"]["title"] for a in data] == ["Second", "First"]
        assert data[0]["opening"]["recruiterId"] == recruiter["user"]["id"]
        assert data[0]["status"] == "Pending"

    def test_empty(self, client, candidate):
        assert client.get("/users/me/applications", headers=auth_headers(candidate)).json() == []
