"""Gift visibility rules.

Every viewer of the board sees the same list of gifts, but what a card
reveals depends on who is looking:

* the sender's name is shown to the sender, and to everybody once the
  event has been revealed;
* images and the message are shown to the sender, and to the recipient
  after the sender has unlocked the gift. Nobody else ever sees them;
* the delivery status follows the contents, except that the sender always
  sees it.

Parties are addressed by participant id. Display names are only used to
match parties when ids are missing on either side (offline mode), and
then compared case-insensitively with whitespace collapsed.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional

from santa_board.constants import (
    SECRET_SANTA_LABEL,
    UNKNOWN_PARTICIPANT_LABEL,
    GiftStatus,
    PlaceholderText,
)


def normalize_display_name(display_name: Optional[str]) -> str:
    """Trims a display name and collapses inner whitespace"""
    return re.sub(r"\s+", " ", (display_name or "").strip())


def display_name_key(display_name: Optional[str]) -> str:
    """Comparison key used for uniqueness checks and name-based matching"""
    return normalize_display_name(display_name).casefold()


@dataclass(frozen=True)
class Party:
    """A participant as far as the policy is concerned"""

    participant_id: Optional[Any] = None
    name: Optional[str] = None


def same_party(first: Party, second: Party) -> bool:
    """
    Decides whether two parties are the same participant.

    Ids win whenever both sides carry one; names are the fallback when at
    least one id is missing. Two anonymous parties never match.
    """
    if first.participant_id is not None and second.participant_id is not None:
        return str(first.participant_id) == str(second.participant_id)

    first_key = display_name_key(first.name)
    if not first_key:
        return False
    return first_key == display_name_key(second.name)


def sender_of(gift) -> Party:
    return Party(
        participant_id=getattr(gift, "from_participant_id", None),
        name=getattr(gift, "from_name", None),
    )


def recipient_of(gift) -> Party:
    return Party(
        participant_id=getattr(gift, "to_participant_id", None),
        name=getattr(gift, "to_name", None),
    )


@dataclass(frozen=True)
class GiftVisibility:
    is_owner: bool
    is_recipient: bool
    can_see_sender: bool
    can_view_contents: bool

    @property
    def can_see_status(self) -> bool:
        return self.can_view_contents or self.is_owner

    @property
    def can_manage(self) -> bool:
        return self.is_owner


def is_owner(gift, viewer: Party) -> bool:
    return same_party(sender_of(gift), viewer)


def is_recipient(gift, viewer: Party) -> bool:
    return same_party(recipient_of(gift), viewer)


def can_see_sender(gift, viewer: Party, event_is_revealed: bool) -> bool:
    return is_owner(gift, viewer) or bool(event_is_revealed)


def can_view_contents(gift, viewer: Party) -> bool:
    return is_owner(gift, viewer) or (
        is_recipient(gift, viewer) and bool(gift.is_unlocked)
    )


def resolve_visibility(gift, viewer: Party, event_is_revealed: bool) -> GiftVisibility:
    """Evaluates all visibility predicates of one gift for one viewer"""
    owner = is_owner(gift, viewer)
    recipient = is_recipient(gift, viewer)
    return GiftVisibility(
        is_owner=owner,
        is_recipient=recipient,
        can_see_sender=owner or bool(event_is_revealed),
        can_view_contents=owner or (recipient and bool(gift.is_unlocked)),
    )


@dataclass
class ImageView:
    url: str
    caption: Optional[str] = None


@dataclass
class GiftCardView:
    """Everything a viewer is allowed to know about a gift"""

    gift_id: Any
    sender_label: str
    recipient_label: str
    is_unlocked: bool
    visibility: GiftVisibility
    status: Optional[str] = None
    status_label: Optional[str] = None
    images: List[ImageView] = field(default_factory=list)
    message: Optional[str] = None
    placeholder: Optional[str] = None

    @property
    def sender_hidden(self) -> bool:
        return not self.visibility.can_see_sender


def _image_view(image) -> ImageView:
    if isinstance(image, str):
        return ImageView(url=image)
    if isinstance(image, dict):
        return ImageView(url=image["url"], caption=image.get("caption"))
    return ImageView(url=image.url, caption=getattr(image, "caption", None))


def present_gift(
    gift,
    viewer: Party,
    event_is_revealed: bool,
    sender_name: Optional[str] = None,
    recipient_name: Optional[str] = None,
) -> GiftCardView:
    """
    Builds the card for a gift as a given viewer may see it.

    :param gift: any object exposing from/to participant ids or names,
        ``status``, ``images``, ``message`` and ``is_unlocked``
    :param viewer: who is looking
    :param event_is_revealed: whether the group reveal has happened
    :param sender_name: display name override, e.g. from a name cache
    :param recipient_name: display name override, e.g. from a name cache
    :return GiftCardView:
    """
    visibility = resolve_visibility(gift, viewer, event_is_revealed)
    sender_name = sender_name or getattr(gift, "from_name", None)
    recipient_name = recipient_name or getattr(gift, "to_name", None)

    card = GiftCardView(
        gift_id=gift.id,
        sender_label=(
            sender_name or UNKNOWN_PARTICIPANT_LABEL
            if visibility.can_see_sender
            else SECRET_SANTA_LABEL
        ),
        recipient_label=recipient_name or UNKNOWN_PARTICIPANT_LABEL,
        is_unlocked=bool(gift.is_unlocked),
        visibility=visibility,
    )

    if visibility.can_see_status:
        card.status = gift.status
        card.status_label = GiftStatus.LABELS.get(gift.status, gift.status)

    if visibility.can_view_contents:
        card.images = [_image_view(image) for image in (gift.images or [])]
        card.message = gift.message or None
    elif visibility.is_recipient:
        card.placeholder = PlaceholderText.WRAPPED_FOR_RECIPIENT
    else:
        card.placeholder = PlaceholderText.HIDDEN_FROM_OTHERS

    return card


def sort_for_viewer(gifts: Iterable, viewer: Party) -> list:
    """Own gifts first, then gifts for the viewer, then everybody else's"""

    def rank(gift) -> int:
        if is_owner(gift, viewer):
            return 0
        if is_recipient(gift, viewer):
            return 1
        return 2

    return sorted(gifts, key=rank)
