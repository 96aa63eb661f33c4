"""
End-to-end flow through the HTTP API: post an opening, apply, accept,
form a team and talk in team chat and direct messages.
"""

from tests.support import apply, auth_headers, create_opening, decide, register


def test_single_role_opening_closes_and_forms_team(client):
    recruiter = register(client, "recruiter@example.com", "Riya Recruiter")
    applicant = register(client, "applicant@example.com", "Ava Applicant")
    opening = create_opening(client, recruiter, roles=[{"name": "Backend", "slots": 1}])
    role = opening["roles"][0]

    application = apply(client, applicant, opening["id"], preferredRoleId=role["id"])
    response = decide(client, recruiter, application["id"], "Accepted", role["id"])
    assert response.status_code == 200

    detail = client.get(f"/openings/{opening['id']}").json()
    assert detail["roles"][0]["filled"] == 1
    assert detail["status"] == "Closed / Team Formed"

    teams = client.get("/teams", headers=auth_headers(applicant)).json()
    assert len(teams) == 1
    roster = {m["id"]: m["teamRole"] for m in teams[0]["members"]}
    assert roster == {recruiter["user"]["id"]: "Originator", applicant["user"]["id"]: "Backend"}

    # Closed openings take no further applications
    latecomer = register(client, "late@example.com", "Leo Latecomer")
    response = client.post(
        f"/applications/openings/{opening['id']}/apply",
        json={},
        headers=auth_headers(latecomer),
    )
    assert response.status_code == 400


def test_multi_role_team_and_chat(client):
    recruiter = register(client, "recruiter@example.com", "Riya Recruiter")
    backend = register(client, "backend@example.com", "Bea Backend")
    designer = register(client, "designer@example.com", "Dan Designer")
    outsider = register(client, "outsider@example.com", "Olly Outsider")

    opening = create_opening(client, recruiter)
    roles = {r["name"]: r["id"] for r in opening["roles"]}

    first = apply(client, backend, opening["id"])
    second = apply(client, designer, opening["id"])
    rejected = apply(client, outsider, opening["id"])

    assert decide(client, recruiter, first["id"], "Accepted", roles["Backend"]).status_code == 200
    assert client.get(f"/openings/{opening['id']}").json()["status"] == "Open"
    assert decide(client, recruiter, rejected["id"], "Rejected").status_code == 200
    assert decide(client, recruiter, second["id"], "Accepted", roles["Designer"]).status_code == 200
    assert client.get(f"/openings/{opening['id']}").json()["status"] == "Closed / Team Formed"

    team = client.get("/teams", headers=auth_headers(designer)).json()[0]
    team_id = team["id"]
    assert len(team["members"]) == 3

    # Repeating an accept does not duplicate members or slots
    assert decide(client, recruiter, first["id"], "Accepted").status_code == 200
    members = client.get(f"/teams/{team_id}/members", headers=auth_headers(recruiter)).json()
    assert len(members) == 3
    assert {r["name"]: r["filled"] for r in client.get(f"/openings/{opening['id']}").json()["roles"]} == {
        "Backend": 1,
        "Designer": 1,
    }

    for auth, text in ((recruiter, "Welcome!"), (backend, "Hi all"), (designer, "Hello")):
        response = client.post(
            f"/teams/{team_id}/chat",
            json={"text": text},
            headers=auth_headers(auth),
        )
        assert response.status_code == 201

    history = client.get(f"/teams/{team_id}/chat", headers=auth_headers(backend)).json()
    assert [m["text"] for m in history] == ["Welcome!", "Hi all", "Hello"]

    # The rejected applicant is not on the team
    assert client.get(f"/teams/{team_id}/chat", headers=auth_headers(outsider)).status_code == 403

    # Direct messages between two teammates
    response = client.post(
        f"/chat/direct/{designer['user']['id']}",
        json={"text": "Can you mock the login page?"},
        headers=auth_headers(backend),
    )
    assert response.status_code == 201
    conversations = client.get("/chat/conversations", headers=auth_headers(designer)).json()
    assert [c["id"] for c in conversations] == [backend["user"]["id"]]

    # Applications view reflects every decision
    mine = client.get("/users/me/applications", headers=auth_headers(outsider)).json()
    assert mine[0]["status"] == "Rejected"
    assert mine[0]["opening"]["status"] == "Closed / Team Formed"


def test_deleted_opening_disappears_everywhere(client):
    recruiter = register(client, "recruiter@example.com", "Riya Recruiter")
    opening = create_opening(client, recruiter)

    client.delete(f"/openings/{opening['id']}", headers=auth_headers(recruiter))

    assert client.get("/openings").json() == []
    assert client.get(f"/users/{recruiter['user']['id']}").json()["openings"] == []
