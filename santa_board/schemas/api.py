from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from santa_board.constants import GiftStatus
from santa_board.core.auth import Identity


class IdentityIn(BaseModel):
    participant_id: int
    player_key: str = Field(min_length=1)

    def to_identity(self) -> Identity:
        return Identity(participant_id=self.participant_id, player_key=self.player_key)


class JoinIn(BaseModel):
    event_code: str
    passcode: str
    display_name: str


class JoinOut(BaseModel):
    event_id: int
    participant_id: int
    player_key: str
    display_name: str


class GiftImageIn(BaseModel):
    url: str
    caption: Optional[str] = None


class GiftImageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    url: str
    caption: Optional[str] = None


class GiftCreateIn(IdentityIn):
    to_participant_id: Optional[int] = None
    status: str = GiftStatus.PENDING
    images: List[GiftImageIn] = Field(default_factory=list)
    message: Optional[str] = None
    is_unlocked: bool = False


class GiftUnlockIn(IdentityIn):
    is_unlocked: bool


class GiftUpdateIn(IdentityIn):
    status: Optional[str] = None
    images: Optional[List[GiftImageIn]] = None
    message: Optional[str] = None


class GiftOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    event_id: int
    from_participant_id: int
    to_participant_id: int
    status: str
    images: List[GiftImageOut]
    message: Optional[str] = None
    is_unlocked: bool
    created_at: datetime


class ParticipantOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    display_name: str
    is_ready: bool
    created_at: datetime


class RenameIn(IdentityIn):
    display_name: str


class LeaveIn(IdentityIn):
    target_participant_id: Optional[int] = None


class ReadyIn(IdentityIn):
    is_ready: bool = True


class EventOut(BaseModel):
    id: int
    code: str
    name: str
    is_revealed: bool
    status: str
    participant_count: int
    ready_count: int


class RevealOut(BaseModel):
    revealed: bool


class OkOut(BaseModel):
    ok: bool = True
    detail: Optional[str] = None
