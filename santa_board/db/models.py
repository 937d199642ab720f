from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from santa_board.constants import EventStatus, GiftStatus
from santa_board.db.database import Base


def now():
    return datetime.now(timezone.utc)


class Event(Base):
    """Shared gift exchange that every participant joins"""

    __tablename__ = "events"

    id = Column(Integer, primary_key=True)
    code = Column(String(32), unique=True, nullable=False)
    name = Column(String(200), nullable=False)
    passcode_hash = Column(String(300), nullable=False)
    is_revealed = Column(Boolean, default=False, nullable=False)
    revealed_at = Column(DateTime)
    created_at = Column(DateTime, default=now)

    participants = relationship(
        "Participant",
        back_populates="event",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Participant.id",
    )
    gifts = relationship(
        "Gift",
        back_populates="event",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Gift.id",
    )

    @property
    def status(self) -> str:
        return EventStatus.REVEALED if self.is_revealed else EventStatus.ACTIVE


class Participant(Base):
    """Identity minted when someone joins the event"""

    __tablename__ = "participants"
    __table_args__ = (
        UniqueConstraint("event_id", "name_key", name="uq_participant_event_name"),
    )

    id = Column(Integer, primary_key=True)
    event_id = Column(
        Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False
    )
    display_name = Column(String(50), nullable=False)
    name_key = Column(String(50), nullable=False)
    player_key_hash = Column(String(300), nullable=False)
    is_ready = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=now)
    updated_at = Column(DateTime, onupdate=now)

    event = relationship("Event", back_populates="participants")
    gifts_sent = relationship(
        "Gift",
        back_populates="sender",
        foreign_keys="[Gift.from_participant_id]",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    gifts_received = relationship(
        "Gift",
        back_populates="recipient",
        foreign_keys="[Gift.to_participant_id]",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Gift(Base):
    """Gift recorded by its sender for another participant"""

    __tablename__ = "gifts"
    __table_args__ = (
        CheckConstraint(
            "from_participant_id <> to_participant_id", name="ck_gift_not_self"
        ),
    )

    id = Column(Integer, primary_key=True)
    event_id = Column(
        Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False
    )
    from_participant_id = Column(
        Integer, ForeignKey("participants.id", ondelete="CASCADE"), nullable=False
    )
    to_participant_id = Column(
        Integer, ForeignKey("participants.id", ondelete="CASCADE"), nullable=False
    )
    status = Column(String(20), default=GiftStatus.PENDING, nullable=False)
    message = Column(Text)
    is_unlocked = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=now)
    updated_at = Column(DateTime, onupdate=now)

    event = relationship("Event", back_populates="gifts")
    sender = relationship(
        "Participant", back_populates="gifts_sent", foreign_keys=[from_participant_id]
    )
    recipient = relationship(
        "Participant",
        back_populates="gifts_received",
        foreign_keys=[to_participant_id],
    )
    images = relationship(
        "GiftImage",
        back_populates="gift",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="GiftImage.position",
    )

    @property
    def from_name(self):
        return self.sender.display_name if self.sender else None

    @property
    def to_name(self):
        return self.recipient.display_name if self.recipient else None


class GiftImage(Base):
    """Screenshot attached to a gift"""

    __tablename__ = "gift_images"

    id = Column(Integer, primary_key=True)
    gift_id = Column(
        Integer, ForeignKey("gifts.id", ondelete="CASCADE"), nullable=False
    )
    position = Column(Integer, default=0, nullable=False)
    url = Column(Text, nullable=False)
    caption = Column(String(200))

    gift = relationship("Gift", back_populates="images")
