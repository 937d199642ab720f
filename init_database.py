from santa_board.db.database import SessionLocal, init_db
from santa_board.db.models import Event, Gift, GiftImage, Participant  # noqa: F401
from santa_board.service.event_service import EventService

if __name__ == "__main__":
    init_db()
    with SessionLocal() as db:
        EventService.get_or_create_event(db)
