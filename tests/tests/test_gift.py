import io

import pytest
from starlette.datastructures import UploadFile

from santa_board.constants import (
    SECRET_SANTA_LABEL,
    GiftStatus,
    NotificationsData,
    PlaceholderText,
)
from santa_board.core.auth import Identity
from santa_board.core.media import MAX_IMAGE_BYTES, read_screenshot, to_data_url
from santa_board.exceptions import AccessDeniedError, InvalidInputError, NotFoundError
from santa_board.schemas.gifts import GiftCreateData, GiftImageData, GiftUpdateData
from santa_board.service.event_service import EventService
from santa_board.service.gift_service import GiftService
from tests.constants.data import PNG_BYTES, TestGiftData


@pytest.fixture
def alice_gift_for_bob(three_participants):
    db, (alice, alice_identity), (bob, bob_identity), carol = three_participants
    gift = GiftService.create_gift(
        db,
        alice_identity,
        GiftCreateData(
            to_participant_id=bob.id,
            status=TestGiftData.status,
            images=[GiftImageData(url=TestGiftData.image_url, caption="Scarf")],
            message=TestGiftData.message,
        ),
    )
    return db, gift, (alice, alice_identity), (bob, bob_identity), carol


def test_create_gift(alice_gift_for_bob):
    """
    Scenario

    1. Alice records a gift for Bob
    2. Check the gift was saved locked with its images in order
    """
    _, gift, (alice, _), (bob, _), _ = alice_gift_for_bob

    assert gift.from_participant_id == alice.id
    assert gift.to_participant_id == bob.id
    assert gift.is_unlocked is False
    assert gift.status == TestGiftData.status
    assert gift.message == TestGiftData.message
    assert [image.url for image in gift.images] == [TestGiftData.image_url]
    assert gift.images[0].caption == "Scarf"
    assert gift.from_name == alice.display_name
    assert gift.to_name == bob.display_name


def test_gift_needs_a_recipient(three_participants):
    db, (_, alice_identity), _, _ = three_participants

    with pytest.raises(InvalidInputError) as e:
        GiftService.create_gift(db, alice_identity, GiftCreateData(to_participant_id=None))
    assert str(e.value) == NotificationsData.SELECT_RECIPIENT


def test_gift_to_yourself_is_rejected(three_participants):
    db, (alice, alice_identity), _, _ = three_participants

    with pytest.raises(InvalidInputError):
        GiftService.create_gift(
            db, alice_identity, GiftCreateData(to_participant_id=alice.id)
        )


def test_gift_to_unknown_participant(three_participants):
    db, (_, alice_identity), _, _ = three_participants

    with pytest.raises(NotFoundError):
        GiftService.create_gift(db, alice_identity, GiftCreateData(to_participant_id=999))


def test_gift_from_forged_key_is_denied(three_participants):
    db, (alice, _), (bob, _), _ = three_participants

    with pytest.raises(AccessDeniedError):
        GiftService.create_gift(
            db,
            Identity(participant_id=alice.id, player_key="forged"),
            GiftCreateData(to_participant_id=bob.id),
        )


@pytest.mark.parametrize(
    "gift_data",
    [
        GiftCreateData(to_participant_id=None, status="lost"),
        GiftCreateData(to_participant_id=None, message="x" * 1001),
        GiftCreateData(
            to_participant_id=None,
            images=[GiftImageData(url=TestGiftData.image_url)] * 4,
        ),
        GiftCreateData(
            to_participant_id=None, images=[GiftImageData(url="ftp://example.com/a")]
        ),
    ],
)
def test_invalid_gift_data(three_participants, gift_data):
    db, (_, alice_identity), (bob, _), _ = three_participants
    gift_data.to_participant_id = bob.id

    with pytest.raises(InvalidInputError):
        GiftService.create_gift(db, alice_identity, gift_data)

    assert GiftService.list_gifts(db, bob.event_id) == []


def test_toggle_lock_twice_restores_the_original_state(alice_gift_for_bob):
    db, gift, (_, alice_identity), _, _ = alice_gift_for_bob

    assert GiftService.toggle_lock(db, alice_identity, gift.id).is_unlocked is True
    assert GiftService.toggle_lock(db, alice_identity, gift.id).is_unlocked is False


def test_set_unlocked_is_idempotent(alice_gift_for_bob):
    db, gift, (_, alice_identity), _, _ = alice_gift_for_bob

    GiftService.set_unlocked(db, alice_identity, gift.id, True)
    assert GiftService.set_unlocked(db, alice_identity, gift.id, True).is_unlocked


def test_only_the_sender_can_change_a_gift(alice_gift_for_bob):
    """
    Scenario

    1. Bob (the recipient) and Carol try to unlock, update and delete Alice's gift
    2. Every attempt is denied and the gift is unchanged
    """
    db, gift, _, (_, bob_identity), (_, carol_identity) = alice_gift_for_bob

    for identity in (bob_identity, carol_identity):
        with pytest.raises(AccessDeniedError):
            GiftService.set_unlocked(db, identity, gift.id, True)
        with pytest.raises(AccessDeniedError):
            GiftService.toggle_lock(db, identity, gift.id)
        with pytest.raises(AccessDeniedError):
            GiftService.update_gift_status(db, identity, gift.id, GiftStatus.DELIVERED)
        with pytest.raises(AccessDeniedError) as e:
            GiftService.delete_gift(db, identity, gift.id)
        assert str(e.value) == NotificationsData.ONLY_OWN_GIFTS

    db.expire_all()
    stored = GiftService.get_gift_by_id(db, gift.id)
    assert stored.is_unlocked is False
    assert stored.status == TestGiftData.status


def test_update_only_touches_given_fields(alice_gift_for_bob):
    db, gift, (_, alice_identity), _, _ = alice_gift_for_bob

    updated = GiftService.update_gift(
        db, alice_identity, gift.id, GiftUpdateData(message="  New note ")
    )
    assert updated.message == "New note"
    assert updated.status == TestGiftData.status
    assert len(updated.images) == 1

    updated = GiftService.update_gift(
        db,
        alice_identity,
        gift.id,
        GiftUpdateData(
            images=[
                GiftImageData(url=TestGiftData.other_image_url),
                GiftImageData(url=TestGiftData.image_url),
            ]
        ),
    )
    assert [image.url for image in updated.images] == [
        TestGiftData.other_image_url,
        TestGiftData.image_url,
    ]

    updated = GiftService.update_gift_status(
        db, alice_identity, gift.id, GiftStatus.DELIVERED
    )
    assert updated.status == GiftStatus.DELIVERED
    assert updated.message == "New note"


def test_delete_gift(alice_gift_for_bob):
    db, gift, (_, alice_identity), _, _ = alice_gift_for_bob
    gift_id = gift.id

    assert GiftService.delete_gift(db, alice_identity, gift_id) == (
        NotificationsData.GIFT_REMOVED
    )
    with pytest.raises(NotFoundError):
        GiftService.get_gift_by_id(db, gift_id)
    with pytest.raises(NotFoundError):
        GiftService.delete_gift(db, alice_identity, gift_id)


def test_gifts_are_listed_in_creation_order(three_participants):
    db, (alice, alice_identity), (bob, bob_identity), (carol, _) = three_participants
    first = GiftService.create_gift(
        db, bob_identity, GiftCreateData(to_participant_id=carol.id)
    )
    second = GiftService.create_gift(
        db, alice_identity, GiftCreateData(to_participant_id=bob.id)
    )

    gifts = GiftService.list_gifts(db, alice.event_id)

    assert [gift.id for gift in gifts] == [first.id, second.id]


def test_board_cards_for_each_viewer(alice_gift_for_bob):
    """
    Scenario

    1. Alice sends a locked gift to Bob
    2. Bob sees a wrapped gift from "Secret Santa", Carol sees nothing inside
    3. Alice unlocks it, Bob now sees the contents but not the sender
    """
    db, gift, (alice, alice_identity), (bob, _), (carol, _) = alice_gift_for_bob

    [alice_card] = GiftService.get_board_cards(db, alice)
    assert alice_card.sender_label == alice.display_name
    assert alice_card.visibility.can_manage
    assert alice_card.images

    [bob_card] = GiftService.get_board_cards(db, bob)
    assert bob_card.sender_label == SECRET_SANTA_LABEL
    assert bob_card.placeholder == PlaceholderText.WRAPPED_FOR_RECIPIENT
    assert bob_card.images == []

    [carol_card] = GiftService.get_board_cards(db, carol)
    assert carol_card.placeholder == PlaceholderText.HIDDEN_FROM_OTHERS
    assert carol_card.status is None

    GiftService.toggle_lock(db, alice_identity, gift.id)
    db.expire_all()

    [bob_card] = GiftService.get_board_cards(db, bob)
    assert bob_card.sender_label == SECRET_SANTA_LABEL
    assert bob_card.message == TestGiftData.message
    assert [image.url for image in bob_card.images] == [TestGiftData.image_url]

    [carol_card] = GiftService.get_board_cards(db, carol)
    assert carol_card.images == []


def test_no_gifts_after_reveal(three_participants):
    db, (alice, alice_identity), (bob, bob_identity), (_, carol_identity) = (
        three_participants
    )
    for identity in (alice_identity, bob_identity, carol_identity):
        EventService.set_ready(db, identity)
    assert EventService.request_reveal(db, alice_identity) is True

    with pytest.raises(InvalidInputError):
        GiftService.create_gift(
            db, alice_identity, GiftCreateData(to_participant_id=bob.id)
        )


def test_uploaded_screenshot_becomes_a_data_url():
    url = to_data_url(PNG_BYTES, "image/png")

    assert url.startswith("data:image/png;base64,")


@pytest.mark.parametrize(
    "content, content_type",
    [
        (PNG_BYTES, "application/pdf"),
        (b"\x00" * (1024 * 1024 + 1), "image/png"),
    ],
)
def test_bad_screenshot_upload(content, content_type):
    with pytest.raises(InvalidInputError):
        to_data_url(content, content_type)


def test_screenshot_read_stops_past_the_limit():
    oversized = io.BytesIO(b"\x00" * (MAX_IMAGE_BYTES + 100))

    content = read_screenshot(UploadFile(oversized, filename="big.png"))

    assert len(content) == MAX_IMAGE_BYTES + 1
    with pytest.raises(InvalidInputError):
        to_data_url(content, "image/png")


def test_declared_size_is_checked_before_reading():
    upload = UploadFile(io.BytesIO(PNG_BYTES), size=MAX_IMAGE_BYTES + 1, filename="a.png")

    with pytest.raises(InvalidInputError):
        read_screenshot(upload)
    assert upload.file.tell() == 0
