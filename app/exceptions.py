"""Domain errors. Store failures are converted into these at the service boundary."""


class LostLinkError(Exception):
    """Base class for recoverable, user-facing failures."""


class StoreLookupError(LostLinkError):
    """Store unreachable or query malformed."""


class CreateError(LostLinkError):
    """An insert into the conversation, message or access log store failed."""


class ConversationInitError(CreateError):
    """Finding or creating the conversation for an item failed."""


class MessageValidationError(LostLinkError):
    """Message rejected before reaching the store (e.g. blank text)."""


class SendFailed(CreateError):
    """Persisting an outgoing chat message failed; the user may retry."""


class SubscriptionError(LostLinkError):
    """The live message feed dropped and could not be re-established."""
