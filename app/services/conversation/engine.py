"""
Conversation engine - the intake state machine.

handle() never touches the store and never sends anything itself. It decides on a
snapshot of the session and returns the next session plus the ordered actions the
bot must execute (send text/image, persist the lead, deliver a quote, reset).
The only capability calls made while deciding are media download and registry
lookup, because their results are part of the next session state.

Global overrides run before the step handler, at any step:
- "price <amount>" from an operator re-issues the quote with pricing
- a media attachment is stored as a packing list reference
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal

from app.constants.steps import Step, next_step
from app.core.config import settings
from app.services.capabilities import LeadRecord, MessageChannel, RegistryLookup
from app.services.conversation.sessions import Session
from app.services.inbound import MEDIA_TYPES, InboundEvent
from app.services.messaging.message_composer import render_message
from app.services.parsing import (
    is_packing_done,
    parse_addresses,
    parse_description,
    parse_email,
    parse_identity,
    parse_permits,
    parse_price_command,
    parse_service_date,
    parse_weight,
)

logger = logging.getLogger(__name__)

MENU_COMMAND = re.compile(r"\b(menu|help|options)\b")
HANDOVER_COMMAND = re.compile(r"\b(agent|human|advisor)\b")
# Matched against the whole message
NEW_QUOTE_COMMAND = re.compile(r"(new )?quote|new")


@dataclass(frozen=True)
class SendText:
    body: str


@dataclass(frozen=True)
class SendImage:
    link: str
    caption: str = ""


@dataclass(frozen=True)
class PersistLead:
    record: LeadRecord


@dataclass(frozen=True)
class DeliverQuote:
    """Assemble a quote from the committed session at `subtotal` and send it."""

    subtotal: Decimal
    caption: str = ""


@dataclass(frozen=True)
class ResetSession:
    """Replace the user's session with a fresh one at the initial step."""


Action = SendText | SendImage | PersistLead | DeliverQuote | ResetSession


@dataclass
class EngineOutcome:
    session: Session
    actions: list[Action] = field(default_factory=list)

    @property
    def step(self) -> Step:
        return self.session.step


class ConversationEngine:
    def __init__(
        self,
        channel: MessageChannel,
        registry: RegistryLookup | None = None,
        company_name: str | None = None,
        logo_url: str | None = None,
    ):
        self.channel = channel
        self.registry = registry
        self.company_name = company_name or settings.company_name
        self.logo_url = logo_url or settings.logo_url

    def _msg(self, key: str, session: Session, **kwargs) -> SendText:
        return SendText(render_message(key, user_id=session.user_id, **kwargs))

    def _advance(self, session: Session) -> None:
        previous = session.step
        session.step = next_step(previous)
        logger.info(f"User {session.user_id}: {previous.value} -> {session.step.value}")

    def welcome(self, session: Session) -> EngineOutcome:
        """First contact: greeting image plus the identity prompt. Content of the event is ignored."""
        caption = render_message("welcome_caption", user_id=session.user_id, company_name=self.company_name)
        return EngineOutcome(
            session=session.snapshot(),
            actions=[SendImage(self.logo_url, caption), self._msg("ask_identity", session)],
        )

    async def handle(self, session: Session, event: InboundEvent) -> EngineOutcome:
        """
        Decide the next state for one inbound event.

        The given session is not modified; the outcome carries a new copy.

        Raises:
            ChannelError: If a media attachment could not be downloaded
        """
        draft = session.snapshot()
        text = event.text or ""

        if event.type == "text":
            price = parse_price_command(text)
            if price.ok:
                return self._price_override(draft, price.value)

        if event.type in MEDIA_TYPES and event.media_ref:
            return await self._store_attachment(draft, event.media_ref)

        handler = self.STEP_HANDLERS[draft.step]
        actions = await handler(self, draft, text)
        return EngineOutcome(session=draft, actions=actions)

    def _price_override(self, session: Session, price: Decimal) -> EngineOutcome:
        session.data.price = price
        logger.info(f"Operator price override for {session.user_id}: {price} (step {session.step.value})")
        caption = render_message("quote_updated_caption", user_id=session.user_id)
        return EngineOutcome(session=session, actions=[DeliverQuote(subtotal=price, caption=caption)])

    async def _store_attachment(self, session: Session, media_ref: str) -> EngineOutcome:
        local_ref = await self.channel.download_media(media_ref)
        session.data.packing_urls.append(local_ref)
        logger.info(f"Stored attachment {local_ref} for {session.user_id} ({len(session.data.packing_urls)} total)")
        return EngineOutcome(session=session, actions=[self._msg("packing_received", session)])

    async def _lookup_registry(self, session: Session) -> None:
        if self.registry is None or not session.data.client_tax_id:
            return
        try:
            result = await self.registry.lookup(session.data.client_tax_id)
        except Exception as e:
            # Enrichment only; the user-typed legal name stands
            logger.warning(f"Registry lookup raised for {session.user_id}: {type(e).__name__}: {e}")
            return
        if result is None:
            return
        if result.legal_name:
            session.data.client_legal_name = result.legal_name
        if result.address:
            session.data.client_address = result.address

    async def _ask_identity(self, session: Session, text: str) -> list[Action]:
        parsed = parse_identity(text)
        if not parsed.ok:
            return [self._msg("repair_identity", session)]

        identity = parsed.value
        session.data.client_name = identity.name
        session.data.client_tax_id = identity.tax_id
        if identity.legal_name:
            session.data.client_legal_name = identity.legal_name
        await self._lookup_registry(session)

        self._advance(session)
        return [self._msg("ask_description", session)]

    async def _ask_description(self, session: Session, text: str) -> list[Action]:
        parsed = parse_description(text)
        if not parsed.ok:
            return [self._msg("repair_description", session)]
        session.data.description = parsed.value
        self._advance(session)
        return [self._msg("ask_weight", session)]

    async def _ask_weight(self, session: Session, text: str) -> list[Action]:
        parsed = parse_weight(text)
        if not parsed.ok:
            return [self._msg("repair_weight", session)]
        session.data.weight_kg = parsed.value
        self._advance(session)
        return [self._msg("ask_packing", session)]

    async def _ask_packing(self, session: Session, text: str) -> list[Action]:
        if not (is_packing_done(text) or session.data.packing_urls):
            return [self._msg("repair_packing", session)]
        self._advance(session)
        return [self._msg("ask_addresses", session)]

    async def _ask_addresses(self, session: Session, text: str) -> list[Action]:
        parsed = parse_addresses(text)
        if not parsed.ok:
            return [self._msg("repair_addresses", session)]
        session.data.pickup_address = parsed.value.pickup
        session.data.dropoff_address = parsed.value.dropoff
        self._advance(session)
        return [self._msg("ask_date", session)]

    async def _ask_date(self, session: Session, text: str) -> list[Action]:
        parsed = parse_service_date(text)
        if not parsed.ok:
            return [self._msg("repair_date", session)]
        session.data.service_date = parsed.value
        self._advance(session)
        return [self._msg("ask_permits", session)]

    async def _ask_permits(self, session: Session, text: str) -> list[Action]:
        session.data.permits = parse_permits(text)
        self._advance(session)
        return [self._msg("ask_email", session)]

    async def _ask_email(self, session: Session, text: str) -> list[Action]:
        parsed = parse_email(text)
        if not parsed.ok:
            return [self._msg("repair_email", session)]

        data = session.data
        data.email = parsed.value
        lead = LeadRecord(
            created_at=datetime.now(UTC),
            user_id=session.user_id,
            client_name=data.client_name,
            client_tax_id=data.client_tax_id,
            client_legal_name=data.client_legal_name,
            email=data.email,
        )
        self._advance(session)
        return [
            PersistLead(lead),
            self._msg("pre_quote_ready", session),
            DeliverQuote(
                subtotal=Decimal("0"),
                caption=render_message("pre_quote_caption", user_id=session.user_id),
            ),
        ]

    async def _summary_and_quote(self, session: Session, text: str) -> list[Action]:
        command = text.lower()
        if MENU_COMMAND.search(command):
            return [self._msg("menu", session)]
        if HANDOVER_COMMAND.search(command):
            # TODO: notify the sales inbox once an operator channel is configured
            logger.info(f"User {session.user_id} asked for a human advisor")
            return [self._msg("handover", session)]
        if NEW_QUOTE_COMMAND.fullmatch(command.strip(" .!")):
            return [ResetSession(), self._msg("new_quote", session)]
        return [self._msg("fallback", session)]

    STEP_HANDLERS = {
        Step.ASK_IDENTITY: _ask_identity,
        Step.ASK_DESCRIPTION: _ask_description,
        Step.ASK_WEIGHT: _ask_weight,
        Step.ASK_PACKING: _ask_packing,
        Step.ASK_ADDRESSES: _ask_addresses,
        Step.ASK_DATE: _ask_date,
        Step.ASK_PERMITS: _ask_permits,
        Step.ASK_EMAIL: _ask_email,
        Step.SUMMARY_AND_QUOTE: _summary_and_quote,
    }
