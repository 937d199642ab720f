import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["EVENT_CODE"] = "GLOBAL"
os.environ["EVENT_PASSCODE"] = "test-passcode"
os.environ["HASH_ROUNDS"] = "1000"
os.environ["MAX_IMAGES_PER_GIFT"] = "3"
os.environ["MAX_IMAGE_MB"] = "1"

import pytest
from fastapi.testclient import TestClient

from santa_board.core.auth import Identity
from santa_board.dependencies import get_db
from santa_board.schemas.participants import JoinData
from santa_board.service.participant_service import ParticipantService
from santa_board.web.main import create_app
from tests.constants.data import (
    TestEventData,
    TestParticipant1,
    TestParticipant2,
    TestParticipant3,
)
from tests.constants.db import SessionLocal, drop_test_db, init_test_db


def join(db, display_name, passcode=TestEventData.passcode, event_code=None):
    result = ParticipantService.join_event(
        db,
        JoinData(
            event_code=event_code or TestEventData.code,
            passcode=passcode,
            display_name=display_name,
        ),
    )
    identity = Identity(
        participant_id=result.participant.id, player_key=result.player_key
    )
    return result.participant, identity


@pytest.fixture()
def init_db():
    init_test_db()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
    drop_test_db()


@pytest.fixture
def three_participants(init_db):
    """Alice, Bob and Carol joined the shared event, in this order"""
    db = init_db
    alice = join(db, TestParticipant1.display_name)
    bob = join(db, TestParticipant2.display_name)
    carol = join(db, TestParticipant3.display_name)
    return db, alice, bob, carol


@pytest.fixture
def app():
    init_test_db()

    def override_get_db():
        db = SessionLocal()
        try:
            yield db
        finally:
            db.close()

    application = create_app()
    application.dependency_overrides[get_db] = override_get_db
    yield application
    application.dependency_overrides.clear()
    drop_test_db()


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def join_participant():
    """Joins the shared event, returning the participant and its identity"""
    return join
