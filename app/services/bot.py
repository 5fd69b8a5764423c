"""
QuoteBot - runs one inbound event through the intake flow.

Per event, while holding the user's lock:
1. first contact -> create the session, send welcome image + identity prompt, stop
2. otherwise let the engine decide on a snapshot of the session
3. append any lead the decision produced
4. commit the decided snapshot to the store
5. execute the outbound actions in order

The lead is appended before the commit: if the append fails the session stays where
it was, so the user resending the same answer retries it. Sends run after the
commit, so a send or render failure never leaves the session half-advanced; it
propagates to the webhook as ChannelError/RenderError.
"""

import logging

from app.services.capabilities import DocumentRenderer, LeadStore, MessageChannel, RegistryLookup
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
from app.services.conversation.sessions import InMemorySessionStore, Session, SessionStore
from app.services.inbound import InboundEvent
from app.services.quotes.assembler import QuoteAssembler

logger = logging.getLogger(__name__)


class QuoteBot:
    def __init__(
        self,
        store: SessionStore,
        channel: MessageChannel,
        renderer: DocumentRenderer,
        leads: LeadStore,
        registry: RegistryLookup | None = None,
        engine: ConversationEngine | None = None,
        assembler: QuoteAssembler | None = None,
    ):
        self.store = store
        self.channel = channel
        self.leads = leads
        self.engine = engine or ConversationEngine(channel, registry)
        self.assembler = assembler or QuoteAssembler(renderer, channel)

    async def handle(self, event: InboundEvent) -> Session:
        """
        Process one inbound event for event.user_id.

        Returns:
            The user's session after the event

        Raises:
            ChannelError: Sending or media download failed
            RenderError: The quote PDF could not be rendered
            Exception: Whatever LeadStore.append raised; the session is left unchanged
        """
        async with self.store.lock_for(event.user_id):
            session = self.store.get(event.user_id)
            if session is None:
                session = self.store.create_or_reset(event.user_id)
                logger.info(f"First contact from {event.user_id} - sending welcome")
                await self._execute(session, self.engine.welcome(session).actions)
                return session

            outcome = await self.engine.handle(session, event)
            for action in outcome.actions:
                if isinstance(action, PersistLead):
                    await self.leads.append(action.record)
            committed = self._commit(outcome)
            await self._execute(committed, outcome.actions)
            return committed

    def _commit(self, outcome: EngineOutcome) -> Session:
        if any(isinstance(action, ResetSession) for action in outcome.actions):
            return self.store.create_or_reset(outcome.session.user_id)
        self.store.save(outcome.session)
        return outcome.session

    async def _execute(self, session: Session, actions: list[Action]) -> None:
        user_id = session.user_id
        for action in actions:
            if isinstance(action, SendText):
                await self.channel.send_text(user_id, action.body)
            elif isinstance(action, SendImage):
                await self.channel.send_image(user_id, action.link, action.caption)
            elif isinstance(action, DeliverQuote):
                await self.assembler.assemble_and_deliver(session, action.subtotal, caption=action.caption)
            elif isinstance(action, (PersistLead, ResetSession)):
                continue  # applied before or at commit
            else:
                raise TypeError(f"Unknown action: {action!r}")


_bot: QuoteBot | None = None


def build_bot() -> QuoteBot:
    """Production wiring: WhatsApp channel, PDF renderer, SQL lead store, HTTP registry."""
    from app.services.integrations.registry import HttpRegistryLookup
    from app.services.leads.leads import SqlLeadStore
    from app.services.messaging.whatsapp import WhatsAppChannel
    from app.services.quotes.rendering import PdfQuoteRenderer

    return QuoteBot(
        store=InMemorySessionStore(),
        channel=WhatsAppChannel(),
        renderer=PdfQuoteRenderer(),
        leads=SqlLeadStore(),
        registry=HttpRegistryLookup(),
    )


def get_bot() -> QuoteBot:
    """FastAPI dependency; one bot (and session store) per process."""
    global _bot
    if _bot is None:
        _bot = build_bot()
    return _bot


def reset_bot() -> None:
    """Drop the process-wide bot. Tests use this between cases."""
    global _bot
    _bot = None
