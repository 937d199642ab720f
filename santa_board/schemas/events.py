from dataclasses import dataclass

from santa_board.db.models import Event


@dataclass
class EventState:
    event: Event
    participant_count: int
    ready_count: int

    @property
    def everyone_ready(self) -> bool:
        return self.participant_count > 0 and self.ready_count == self.participant_count
