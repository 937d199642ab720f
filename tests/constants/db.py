from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from santa_board.db.database import Base, build_engine
from santa_board.db.models import Event, Gift, GiftImage, Participant  # noqa: F401

engine = build_engine("sqlite://", poolclass=StaticPool)

SessionLocal = sessionmaker(bind=engine)


def init_test_db():
    Base.metadata.create_all(bind=engine)


def drop_test_db():
    Base.metadata.drop_all(bind=engine)
