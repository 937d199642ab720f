from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional

from santa_board.constants import GiftStatus


def _parse_datetime(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


@dataclass
class JoinedSession:
    """Identity handed out by a join, kept by the caller between runs"""

    event_code: str
    display_name: str
    participant_id: Optional[int] = None
    player_key: Optional[str] = None

    @property
    def has_key(self) -> bool:
        return self.participant_id is not None and bool(self.player_key)

    def credentials(self) -> dict:
        return {"participant_id": self.participant_id, "player_key": self.player_key}


@dataclass
class ParticipantRecord:
    display_name: str
    id: Optional[int] = None
    is_ready: bool = False
    created_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: dict) -> "ParticipantRecord":
        return cls(
            id=data.get("id"),
            display_name=data["display_name"],
            is_ready=bool(data.get("is_ready", False)),
            created_at=_parse_datetime(data.get("created_at")),
        )


@dataclass
class ImageRecord:
    url: str
    caption: Optional[str] = None
    id: Optional[Any] = None

    @classmethod
    def from_dict(cls, data) -> "ImageRecord":
        if isinstance(data, str):
            return cls(url=data)
        return cls(url=data["url"], caption=data.get("caption"), id=data.get("id"))

    def to_dict(self) -> dict:
        return {"url": self.url, "caption": self.caption}


@dataclass
class GiftRecord:
    """
    Gift as read from a store.

    Remote gifts are addressed by participant ids; offline gifts only carry
    the display names of their sender and recipient.
    """

    id: Any
    status: str = GiftStatus.PENDING
    is_unlocked: bool = False
    images: List[ImageRecord] = field(default_factory=list)
    message: Optional[str] = None
    from_participant_id: Optional[int] = None
    to_participant_id: Optional[int] = None
    from_name: Optional[str] = None
    to_name: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: dict) -> "GiftRecord":
        return cls(
            id=data["id"],
            status=data.get("status", GiftStatus.PENDING),
            is_unlocked=bool(data.get("is_unlocked", False)),
            images=[ImageRecord.from_dict(image) for image in data.get("images") or []],
            message=data.get("message") or None,
            from_participant_id=data.get("from_participant_id"),
            to_participant_id=data.get("to_participant_id"),
            from_name=data.get("from_name"),
            to_name=data.get("to_name"),
            created_at=_parse_datetime(data.get("created_at")),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "status": self.status,
            "is_unlocked": self.is_unlocked,
            "images": [image.to_dict() for image in self.images],
            "message": self.message,
            "from_participant_id": self.from_participant_id,
            "to_participant_id": self.to_participant_id,
            "from_name": self.from_name,
            "to_name": self.to_name,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass
class EventRecord:
    is_revealed: bool = False
    id: Optional[int] = None
    code: Optional[str] = None
    name: Optional[str] = None
    participant_count: int = 0
    ready_count: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "EventRecord":
        return cls(
            id=data.get("id"),
            code=data.get("code"),
            name=data.get("name"),
            is_revealed=bool(data.get("is_revealed", False)),
            participant_count=data.get("participant_count", 0),
            ready_count=data.get("ready_count", 0),
        )


@dataclass
class GiftDraft:
    """What the add gift form collects before anything is sent"""

    status: str = GiftStatus.PENDING
    images: List[ImageRecord] = field(default_factory=list)
    message: Optional[str] = None
    is_unlocked: bool = False
