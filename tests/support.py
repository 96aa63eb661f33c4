"""Request helpers shared by the API and integration tests."""

DEFAULT_PASSWORD = "SecurePass123"

OPENING_PAYLOAD = {
    "title": "Campus Hackathon Squad",
    "type": "Hackathon",
    "stage": "Idea Only",
    "description": "Looking for people to build a study-planner in 36 hours.",
    "timeline": "Next weekend",
    "commitment": "Casual/Weekends Only",
    "compensation": None,
    "location": "Remote/Online Only",
    "tags": ["python", "react"],
    "roles": [
        {"name": "Backend", "slots": 1},
        {"name": "Designer", "slots": 1},
    ],
}


def register(client, email: str, name: str = "Test User", password: str = DEFAULT_PASSWORD) -> dict:
    """Register an account and return the auth response body."""
    response = client.post(
        "/auth/register",
        json={"email": email, "password": password, "name": name},
    )
    assert response.status_code == 201, response.text
    return response.json()


def auth_headers(auth: dict) -> dict:
    return {"Authorization": f"Bearer {auth['accessToken']}"}


def create_opening(client, auth: dict, **overrides) -> dict:
    payload = {**OPENING_PAYLOAD, **overrides}
    response = client.post("/openings", json=payload, headers=auth_headers(auth))
    assert response.status_code == 201, response.text
    return response.json()


def apply(client, auth: dict, opening_id: int, **body) -> dict:
    response = client.post(
        f"/applications/openings/{opening_id}/apply",
        json=body,
        headers=auth_headers(auth),
    )
    assert response.status_code == 201, response.text
    return response.json()


def decide(client, auth: dict, application_id: int, status: str, role_id=None):
    """PATCH an application's status and return the raw response."""
    body = {"status": status}
    if role_id is not None:
        body["roleId"] = role_id
    return client.patch(
        f"/applications/applications/{application_id}/status",
        json=body,
        headers=auth_headers(auth),
    )
