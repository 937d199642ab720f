from santa_board.db.database import drop_all
from santa_board.db.models import Event, Gift, GiftImage, Participant  # noqa: F401

if __name__ == "__main__":
    drop_all()
