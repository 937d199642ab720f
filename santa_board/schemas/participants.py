from dataclasses import dataclass

from santa_board.db.models import Event, Participant


@dataclass
class JoinData:
    event_code: str
    passcode: str
    display_name: str


@dataclass
class JoinResult:
    event: Event
    participant: Participant
    player_key: str
