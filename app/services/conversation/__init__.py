"""
Conversation flow: intake state machine and session store.

Re-exports for stable public API: from app.services.conversation import ConversationEngine, InMemorySessionStore, etc.
"""

from app.services.conversation.engine import (
    Action,
    ConversationEngine,
    DeliverQuote,
    EngineOutcome,
    PersistLead,
    ResetSession,
    SendImage,
    SendText,
)
from app.services.conversation.sessions import (
    InMemorySessionStore,
    QuoteData,
    Session,
    SessionStore,
)

__all__ = [
    "Action",
    "ConversationEngine",
    "DeliverQuote",
    "EngineOutcome",
    "InMemorySessionStore",
    "PersistLead",
    "QuoteData",
    "ResetSession",
    "SendImage",
    "SendText",
    "Session",
    "SessionStore",
]
