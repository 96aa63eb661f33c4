"""Tests for direct message endpoints."""

from tests.support import auth_headers, register


def send(client, auth, peer_id, text):
    return client.post(
        f"/chat/direct/{peer_id}",
        json={"text": text},
        headers=auth_headers(auth),
    )


class TestDirectMessages:

    def test_send_and_read(self, client, recruiter, candidate):
        peer_id = candidate["user"]["id"]

        response = send(client, recruiter, peer_id, "Hi Casey")

        assert response.status_code == 201
        message = response.json()
        assert message["senderId"] == recruiter["user"]["id"]
        assert message["receiverId"] == peer_id
        assert message["sender"]["name"] == "Riya Recruiter"
        assert message["receiver"]["name"] == "Casey Candidate"

    def test_conversation_both_directions_in_order(self, client, recruiter, candidate):
        recruiter_id = recruiter["user"]["id"]
        candidate_id = candidate["user"]["id"]
        first = send(client, recruiter, candidate_id, "one").json()
        second = send(client, candidate, recruiter_id, "two").json()
        third = send(client, recruiter, candidate_id, "three").json()

        for auth, peer in ((recruiter, candidate_id), (candidate, recruiter_id)):
            history = client.get(f"/chat/direct/{peer}", headers=auth_headers(auth)).json()
            assert [m["id"] for m in history] == [first["id"], second["id"], third["id"]]

        newer = client.get(
            f"/chat/direct/{recruiter_id}",
            params={"after": second["id"]},
            headers=auth_headers(candidate),
        ).json()
        assert [m["text"] for m in newer] == ["three"]

    def test_third_party_conversations_are_private(self, client, recruiter, candidate):
        outsider = register(client, "outsider@example.com", "Olly Outsider")
        send(client, recruiter, candidate["user"]["id"], "secret plans")

        history = client.get(
            f"/chat/direct/{candidate['user']['id']}",
            headers=auth_headers(outsider),
        ).json()

        assert history == []

    def test_cannot_message_self(self, client, recruiter):
        own_id = recruiter["user"]["id"]

        response = send(client, recruiter, own_id, "note to self")

        assert response.status_code == 400
        assert response.json()["message"] == "You cannot message yourself"
        assert client.get(f"/chat/direct/{own_id}", headers=auth_headers(recruiter)).status_code == 400

    def test_unknown_peer(self, client, recruiter):
        response = send(client, recruiter, 9999, "hello?")

        assert response.status_code == 404
        assert response.json()["message"] == "User not found"

    def test_empty_text_rejected(self, client, recruiter, candidate):
        assert send(client, recruiter, candidate["user"]["id"], "   ").status_code == 422

    def test_requires_auth(self, client, candidate):
        response = client.post(f"/chat/direct/{candidate['user']['id']}", json={"text": "hi"})

        assert response.status_code == 401


class TestConversations:

    def test_most_recent_first(self, client, recruiter, candidate, second_candidate):
        send(client, recruiter, candidate["user"]["id"], "to casey")
        send(client, second_candidate, recruiter["user"]["id"], "to riya")

        peers = client.get("/chat/conversations", headers=auth_headers(recruiter)).json()

        assert [p["name"] for p in peers] == ["Sam Second", "Casey Candidate"]

        send(client, candidate, recruiter["user"]["id"], "reply from casey")
        peers = client.get("/chat/conversations", headers=auth_headers(recruiter)).json()

        assert [p["name"] for p in peers] == ["Casey Candidate", "Sam Second"]

    def test_peers_are_distinct(self, client, recruiter, candidate):
        for text in ("a", "b", "c"):
            send(client, recruiter, candidate["user"]["id"], text)

        peers = client.get("/chat/conversations", headers=auth_headers(candidate)).json()

        assert [p["id"] for p in peers] == [recruiter["user"]["id"]]

    def test_no_conversations(self, client, recruiter):
        assert client.get("/chat/conversations", headers=auth_headers(recruiter)).json() == []
