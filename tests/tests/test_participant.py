import pytest

from santa_board.constants import NotificationsData
from santa_board.core.auth import Identity
from santa_board.core.security import verify_secret
from santa_board.db.models import Gift
from santa_board.exceptions import (
    AccessDeniedError,
    ConflictError,
    InvalidInputError,
    NotFoundError,
)
from santa_board.schemas.gifts import GiftCreateData
from santa_board.schemas.participants import JoinData
from santa_board.service.event_service import EventService
from santa_board.service.gift_service import GiftService
from santa_board.service.participant_service import ParticipantService
from tests.constants.data import TestEventData, TestParticipant1, TestParticipant2


def test_join_mints_a_player_key_and_stores_only_its_hash(init_db):
    """
    Scenario

    1. Join the shared event with the right passcode
    2. Check a player key was returned and only its hash was saved
    """
    db = init_db
    result = ParticipantService.join_event(
        db,
        JoinData(
            event_code=TestEventData.code,
            passcode=TestEventData.passcode,
            display_name=f"  {TestParticipant1.display_name}  ",
        ),
    )

    participant = result.participant
    assert result.player_key, "player key was not returned"
    assert participant.display_name == TestParticipant1.display_name
    assert participant.player_key_hash != result.player_key
    assert verify_secret(result.player_key, participant.player_key_hash)
    assert participant.is_ready is False
    assert result.event.code == TestEventData.code


def test_join_with_wrong_passcode_is_denied(init_db):
    with pytest.raises(AccessDeniedError):
        ParticipantService.join_event(
            init_db,
            JoinData(
                event_code=TestEventData.code,
                passcode=TestEventData.wrong_passcode,
                display_name=TestParticipant1.display_name,
            ),
        )


def test_join_unknown_event(init_db):
    with pytest.raises(NotFoundError):
        ParticipantService.join_event(
            init_db,
            JoinData(
                event_code=TestEventData.unknown_code,
                passcode=TestEventData.passcode,
                display_name=TestParticipant1.display_name,
            ),
        )


@pytest.mark.parametrize("display_name", ["", "   ", "A", "x" * 51])
def test_join_with_invalid_name(init_db, display_name):
    with pytest.raises(InvalidInputError):
        ParticipantService.join_event(
            init_db,
            JoinData(
                event_code=TestEventData.code,
                passcode=TestEventData.passcode,
                display_name=display_name,
            ),
        )


def test_join_requires_event_code_and_passcode(init_db):
    with pytest.raises(InvalidInputError):
        ParticipantService.join_event(
            init_db,
            JoinData(event_code=" ", passcode=TestEventData.passcode, display_name="Alice"),
        )
    with pytest.raises(InvalidInputError):
        ParticipantService.join_event(
            init_db,
            JoinData(event_code=TestEventData.code, passcode="", display_name="Alice"),
        )


def test_display_names_are_unique_ignoring_case(init_db, join_participant):
    db = init_db
    join_participant(db, TestParticipant1.display_name)

    with pytest.raises(ConflictError):
        join_participant(db, TestParticipant1.display_name.upper())


def test_concurrent_join_with_same_name_is_a_conflict(
    init_db, join_participant, monkeypatch
):
    """
    Scenario

    1. Two joins with the same name both pass the name check
    2. The second one hits the unique constraint and gets a conflict
    3. The session is still usable afterwards
    """
    db = init_db
    alice, _ = join_participant(db, TestParticipant1.display_name)
    monkeypatch.setattr(ParticipantService, "name_taken", lambda *args, **kwargs: False)

    with pytest.raises(ConflictError) as e:
        join_participant(db, TestParticipant1.display_name.lower())
    assert str(e.value) == NotificationsData.NAME_TAKEN

    participants = ParticipantService.list_participants(db, alice.event_id)
    assert [p.display_name for p in participants] == [TestParticipant1.display_name]


def test_authenticate_rejects_a_stale_key(three_participants):
    db, (alice, alice_identity), _, _ = three_participants

    assert ParticipantService.authenticate(db, alice_identity).id == alice.id

    with pytest.raises(AccessDeniedError) as e:
        ParticipantService.authenticate(
            db, Identity(participant_id=alice.id, player_key="forged")
        )
    assert str(e.value) == NotificationsData.SESSION_EXPIRED

    with pytest.raises(AccessDeniedError):
        ParticipantService.authenticate(
            db, Identity(participant_id=9999, player_key=alice_identity.player_key)
        )


def test_participants_are_listed_in_join_order(three_participants):
    db, (alice, _), (bob, _), (carol, _) = three_participants

    participants = ParticipantService.list_participants(db, alice.event_id)

    assert [p.id for p in participants] == [alice.id, bob.id, carol.id]


def test_rename(three_participants):
    db, (alice, alice_identity), (bob, _), _ = three_participants

    renamed = ParticipantService.rename(db, alice_identity, "  Alice   Cooper ")
    assert renamed.display_name == "Alice Cooper"

    with pytest.raises(ConflictError):
        ParticipantService.rename(db, alice_identity, bob.display_name.lower())


def test_participant_can_only_remove_themselves(three_participants):
    """
    Scenario

    1. Alice sends a gift to Bob and Bob sends one to Alice
    2. Alice cannot remove Bob
    3. Alice removes herself, her gifts in both directions disappear
    """
    db, (alice, alice_identity), (bob, bob_identity), _ = three_participants
    GiftService.create_gift(db, alice_identity, GiftCreateData(to_participant_id=bob.id))
    GiftService.create_gift(db, bob_identity, GiftCreateData(to_participant_id=alice.id))
    event_id = alice.event_id
    alice_id = alice.id

    with pytest.raises(AccessDeniedError):
        ParticipantService.remove_participant(db, alice_identity, bob.id)

    detail = ParticipantService.remove_participant(db, alice_identity)

    assert detail == NotificationsData.PARTICIPANT_LEFT.format(
        name=TestParticipant1.display_name
    )
    db.expire_all()
    remaining = ParticipantService.list_participants(db, event_id)
    assert alice_id not in [p.id for p in remaining]
    assert db.query(Gift).count() == 0
    assert EventService.get_event_state(db, event_id).participant_count == 2

    with pytest.raises(AccessDeniedError):
        ParticipantService.authenticate(db, alice_identity)


def test_name_can_be_reused_after_leaving(three_participants, join_participant):
    db, (_, alice_identity), _, _ = three_participants
    ParticipantService.remove_participant(db, alice_identity)

    participant, _ = join_participant(db, TestParticipant1.display_name)

    assert participant.display_name == TestParticipant1.display_name


def test_second_participant_gets_a_different_key(init_db, join_participant):
    db = init_db
    _, first = join_participant(db, TestParticipant1.display_name)
    _, second = join_participant(db, TestParticipant2.display_name)

    assert first.player_key != second.player_key
