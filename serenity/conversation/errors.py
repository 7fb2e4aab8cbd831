"""Exceptions raised by the conversation package."""


class ConversationError(Exception):
    """Base class for conversation errors."""


class CategoryTableError(ConversationError, ValueError):
    """The category table violates an ordering or labelling rule."""


class InvalidInput(ConversationError):
    """Submitted text is empty or whitespace only."""


class SessionBusy(ConversationError):
    """A reply is still pending for the session."""


class SessionNotFoundError(ConversationError, ValueError):
    """No session exists for the given id."""

    def __init__(self, session_id: str):
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id
