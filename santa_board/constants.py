class GiftStatus:
    PENDING = "pending"
    PARTIAL = "partial"
    DELIVERED = "delivered"
    ALL = [PENDING, PARTIAL, DELIVERED]
    LABELS = {
        PENDING: "On the way",
        PARTIAL: "Partially delivered",
        DELIVERED: "Delivered",
    }
    ICONS = {
        PENDING: "🚚",
        PARTIAL: "📦",
        DELIVERED: "✅",
    }


class EventStatus:
    ACTIVE = "active"
    REVEALED = "revealed"
    ALL = [ACTIVE, REVEALED]


class RevealOutcome:
    REVEALED = "revealed"
    NOT_READY = "not_ready"
    FAILED = "failed"


SECRET_SANTA_LABEL = "Secret Santa 🤫"
UNKNOWN_PARTICIPANT_LABEL = "Someone"


class PlaceholderText:
    WRAPPED_FOR_RECIPIENT = "This gift is still wrapped! Wait for the reveal..."
    HIDDEN_FROM_OTHERS = "Only the gifter and recipient can see this"
    NO_IMAGES = "No images yet"


class NotificationsData:
    JOINED = "Joined!"
    JOIN_FAILED = "Failed to join event. Check passcode and try again."
    GIFT_WRAPPED = "Gift for {name} wrapped and ready! 🎁"
    GIFT_REVEALED_TO = "Gift revealed to {name}! 🎄"
    GIFT_HIDDEN_FROM = "Gift hidden from {name}"
    GIFT_REMOVED = "Gift removed"
    GIFT_STATUS_UPDATED = "Delivery status updated"
    PARTICIPANT_LEFT = "{name} left the party"
    PARTICIPANT_RENAMED = "You are now playing as {name}"
    READY = "You are ready for the big reveal!"
    NOT_READY = "You are no longer marked as ready"
    BIG_REVEAL = (
        "🎉 The big reveal! Everyone can now see who their Secret Santa was!"
    )
    NOT_EVERYONE_READY = (
        "Not everyone is ready yet. Ask everyone to mark ready first."
    )
    SESSION_EXPIRED = "Session expired. Please re-join the event."
    SELECT_RECIPIENT = "Please select who you are gifting"
    SELF_GIFT = "You cannot send a gift to yourself"
    TOO_MANY_IMAGES = "A gift can hold at most {count} screenshots"
    EVENT_ALREADY_REVEALED = "The event has already been revealed"
    NAME_TOO_SHORT = "Name must be at least 2 characters"
    NAME_TAKEN = "This name is already taken in this event"
    ONLY_OWN_GIFTS = "Only the gifter can change this gift"
    ADD_GIFT_FAILED = "Failed to add gift"
    UPDATE_GIFT_FAILED = "Failed to update gift"
    REMOVE_GIFT_FAILED = "Failed to remove gift"
    END_EVENT_FAILED = "Failed to end event"
    DATABASE_ERROR = "Database error, please try again"
