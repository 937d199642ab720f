from dataclasses import dataclass, field
from typing import List, Optional

from santa_board.constants import GiftStatus

NOT_PROVIDED = object()


@dataclass
class GiftImageData:
    url: str
    caption: Optional[str] = None


@dataclass
class GiftCreateData:
    to_participant_id: Optional[int]
    status: str = GiftStatus.PENDING
    images: List[GiftImageData] = field(default_factory=list)
    message: Optional[str] = None
    is_unlocked: bool = False


@dataclass
class GiftUpdateData:
    status: Optional[str] = NOT_PROVIDED
    images: Optional[List[GiftImageData]] = NOT_PROVIDED
    message: Optional[str] = NOT_PROVIDED
