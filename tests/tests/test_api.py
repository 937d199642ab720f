import pytest

from santa_board.constants import EventStatus, GiftStatus, NotificationsData
from tests.constants.data import (
    TestEventData,
    TestGiftData,
    TestParticipant1,
    TestParticipant2,
    TestParticipant3,
)


def api_join(client, display_name, passcode=TestEventData.passcode):
    return client.post(
        "/api/join",
        json={
            "event_code": TestEventData.code,
            "passcode": passcode,
            "display_name": display_name,
        },
    )


def credentials(joined: dict) -> dict:
    return {"participant_id": joined["participant_id"], "player_key": joined["player_key"]}


@pytest.fixture
def joined(client):
    return [
        api_join(client, participant.display_name).json()
        for participant in (TestParticipant1, TestParticipant2, TestParticipant3)
    ]


@pytest.fixture
def gift(client, joined):
    alice, bob, _ = joined
    resp = client.post(
        "/api/gifts",
        json={
            **credentials(alice),
            "to_participant_id": bob["participant_id"],
            "status": TestGiftData.status,
            "images": [{"url": TestGiftData.image_url}],
            "message": TestGiftData.message,
        },
    )
    assert resp.status_code == 200, resp.text
    return resp.json()


def test_join(client):
    resp = api_join(client, TestParticipant1.display_name)

    assert resp.status_code == 200
    data = resp.json()
    assert data["display_name"] == TestParticipant1.display_name
    assert data["player_key"]
    assert data["participant_id"]


def test_join_errors(client):
    assert api_join(client, "Alice", TestEventData.wrong_passcode).status_code == 403
    assert api_join(client, "A").status_code == 400
    assert api_join(client, "Alice").status_code == 200
    resp = api_join(client, "ALICE")
    assert resp.status_code == 409
    assert resp.json()["detail"] == NotificationsData.NAME_TAKEN
    assert client.post("/api/join", json={"event_code": "GLOBAL"}).status_code == 422


def test_read_event_participants_and_gifts(client, joined, gift):
    event = client.get("/api/event").json()
    assert event["is_revealed"] is False
    assert event["status"] == EventStatus.ACTIVE
    assert event["participant_count"] == 3
    assert event["ready_count"] == 0

    participants = client.get("/api/participants").json()
    assert [p["display_name"] for p in participants] == ["Alice", "Bob", "Carol"]
    assert "player_key_hash" not in participants[0]

    gifts = client.get("/api/gifts").json()
    assert len(gifts) == 1
    assert gifts[0]["from_participant_id"] == joined[0]["participant_id"]
    assert gifts[0]["to_participant_id"] == joined[1]["participant_id"]
    assert gifts[0]["is_unlocked"] is False
    assert gifts[0]["images"][0]["url"] == TestGiftData.image_url


def test_unknown_event_code(client):
    assert client.get("/api/event", params={"event_code": "NOPE"}).status_code == 404


def test_add_gift_errors(client, joined):
    alice, _, _ = joined

    resp = client.post("/api/gifts", json={**credentials(alice)})
    assert resp.status_code == 400
    assert resp.json()["detail"] == NotificationsData.SELECT_RECIPIENT

    resp = client.post(
        "/api/gifts",
        json={**credentials(alice), "to_participant_id": alice["participant_id"]},
    )
    assert resp.status_code == 400

    resp = client.post(
        "/api/gifts",
        json={
            "participant_id": alice["participant_id"],
            "player_key": "forged",
            "to_participant_id": joined[1]["participant_id"],
        },
    )
    assert resp.status_code == 403
    assert resp.json()["detail"] == NotificationsData.SESSION_EXPIRED


def test_only_sender_changes_gift(client, joined, gift):
    _, bob, carol = joined

    for other in (bob, carol):
        resp = client.post(
            f"/api/gifts/{gift['id']}/unlocked",
            json={**credentials(other), "is_unlocked": True},
        )
        assert resp.status_code == 403
        assert resp.json()["detail"] == NotificationsData.ONLY_OWN_GIFTS

        resp = client.post(f"/api/gifts/{gift['id']}/delete", json=credentials(other))
        assert resp.status_code == 403

    assert client.get("/api/gifts").json()[0]["is_unlocked"] is False


def test_unlock_update_and_delete(client, joined, gift):
    alice = joined[0]
    url = f"/api/gifts/{gift['id']}"

    resp = client.post(f"{url}/unlocked", json={**credentials(alice), "is_unlocked": True})
    assert resp.status_code == 200
    assert resp.json()["is_unlocked"] is True

    resp = client.post(
        f"{url}/update", json={**credentials(alice), "status": GiftStatus.DELIVERED}
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == GiftStatus.DELIVERED
    assert resp.json()["message"] == TestGiftData.message

    resp = client.post(f"{url}/update", json={**credentials(alice), "status": "lost"})
    assert resp.status_code == 400

    resp = client.post(f"{url}/delete", json=credentials(alice))
    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "detail": NotificationsData.GIFT_REMOVED}
    assert client.get("/api/gifts").json() == []

    resp = client.post(f"{url}/delete", json=credentials(alice))
    assert resp.status_code == 404


def test_reveal_flow(client, joined):
    """
    Scenario

    1. Only Alice is ready, her reveal request returns revealed=false
    2. Everybody gets ready, the reveal is granted and sticks
    """
    alice, bob, carol = joined
    client.post(
        "/api/participants/me/ready", json={**credentials(alice), "is_ready": True}
    )

    resp = client.post("/api/event/reveal", json=credentials(alice))
    assert resp.status_code == 200
    assert resp.json() == {"revealed": False}
    assert client.get("/api/event").json()["ready_count"] == 1

    for participant in (bob, carol):
        resp = client.post(
            "/api/participants/me/ready",
            json={**credentials(participant), "is_ready": True},
        )
        assert resp.json()["is_ready"] is True

    assert client.post("/api/event/reveal", json=credentials(carol)).json() == {
        "revealed": True
    }
    event = client.get("/api/event").json()
    assert event["is_revealed"] is True
    assert event["status"] == EventStatus.REVEALED

    resp = client.post(
        "/api/gifts",
        json={**credentials(alice), "to_participant_id": bob["participant_id"]},
    )
    assert resp.status_code == 400


def test_rename_and_leave(client, joined, gift):
    alice, bob, _ = joined

    resp = client.post(
        "/api/participants/me/rename",
        json={**credentials(alice), "display_name": "Alicia"},
    )
    assert resp.status_code == 200
    assert resp.json()["display_name"] == "Alicia"

    resp = client.post(
        "/api/participants/me/rename",
        json={**credentials(alice), "display_name": "bob"},
    )
    assert resp.status_code == 409

    resp = client.post(
        "/api/participants/me/leave",
        json={**credentials(alice), "target_participant_id": bob["participant_id"]},
    )
    assert resp.status_code == 403

    resp = client.post("/api/participants/me/leave", json=credentials(alice))
    assert resp.status_code == 200
    assert resp.json()["detail"] == NotificationsData.PARTICIPANT_LEFT.format(name="Alicia")
    assert [p["display_name"] for p in client.get("/api/participants").json()] == [
        "Bob",
        "Carol",
    ]
    assert client.get("/api/gifts").json() == []
