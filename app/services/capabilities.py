"""
Capability interfaces the conversation core depends on.

Production implementations:
- MessageChannel   -> app.services.messaging.whatsapp.WhatsAppChannel
- DocumentRenderer -> app.services.quotes.rendering.PdfQuoteRenderer
- LeadStore        -> app.services.leads.leads.SqlLeadStore
- RegistryLookup   -> app.services.integrations.registry.HttpRegistryLookup

Tests swap in the fakes from tests/helpers/fakes.py.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from app.services.quotes.assembler import QuoteRequest


class ChannelError(Exception):
    """Sending to, or downloading from, the messaging channel failed."""


class RenderError(Exception):
    """The quote document could not be rendered."""


@dataclass(frozen=True)
class LeadRecord:
    created_at: datetime
    user_id: str
    client_name: str | None
    client_tax_id: str | None
    client_legal_name: str | None
    email: str | None


@dataclass(frozen=True)
class RegistryResult:
    legal_name: str | None
    address: str | None = None


class MessageChannel(Protocol):
    async def send_text(self, user_id: str, body: str) -> dict: ...

    async def send_image(self, user_id: str, link: str, caption: str = "") -> dict: ...

    async def send_document(
        self, user_id: str, link: str, filename: str, caption: str = ""
    ) -> dict: ...

    async def download_media(self, media_ref: str) -> str: ...


class DocumentRenderer(Protocol):
    async def render(self, quote: "QuoteRequest") -> str: ...


class LeadStore(Protocol):
    async def append(self, record: LeadRecord) -> None: ...


class RegistryLookup(Protocol):
    async def lookup(self, tax_id: str) -> RegistryResult | None: ...
