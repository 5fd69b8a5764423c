"""
Quote assembler - turns a session into a QuoteRequest and delivers the rendered PDF.

Used twice in a conversation: once with subtotal 0 when intake completes (the
pre-quote), and again every time an operator sends "price <amount>".
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from pathlib import PurePosixPath

from app.core.config import settings
from app.services.capabilities import DocumentRenderer, MessageChannel
from app.services.conversation.sessions import Session
from app.services.quotes.pricing import calculate_pricing
from app.services.quotes.quote_number import generate_quote_number

logger = logging.getLogger(__name__)

MISSING = "-"


@dataclass(frozen=True)
class QuoteRequest:
    """Everything the document template needs. Built per render, never stored."""

    number: str
    issue_date: str  # DD.MM.YYYY
    client_name: str
    client_tax_id: str
    client_address: str
    description: str
    weight_kg: str
    pickup: str
    dropoff: str
    service_date: str
    permits: str
    email: str
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    tax_rate: Decimal
    footer_notes: str
    company_name: str
    logo_url: str


@dataclass(frozen=True)
class DeliveredQuote:
    number: str
    link: str
    filename: str


def format_weight(weight_kg: float | None) -> str:
    """1200.0 -> '1200', 1200.5 -> '1200.5', None -> '-'."""
    if weight_kg is None:
        return MISSING
    if float(weight_kg).is_integer():
        return str(int(weight_kg))
    return str(weight_kg)


def _or_missing(value: str | None) -> str:
    return value if value else MISSING


class QuoteAssembler:
    def __init__(
        self,
        renderer: DocumentRenderer,
        channel: MessageChannel,
        public_base_url: str | None = None,
        tax_rate: Decimal | None = None,
        footer_notes: str | None = None,
        company_name: str | None = None,
        logo_url: str | None = None,
    ):
        self.renderer = renderer
        self.channel = channel
        self.public_base_url = (public_base_url or settings.public_base_url).rstrip("/")
        self.tax_rate = tax_rate if tax_rate is not None else settings.tax_rate
        self.footer_notes = footer_notes if footer_notes is not None else settings.quote_footer_notes
        self.company_name = company_name or settings.company_name
        self.logo_url = logo_url or settings.logo_url

    def assemble(self, session: Session, subtotal: Decimal, now: datetime | None = None) -> QuoteRequest:
        """
        Build the document request for `session` priced at `subtotal`.

        The client block shows the legal name when known, else the contact name.
        Fields not collected yet print as "-".
        """
        moment = now or datetime.now()
        data = session.data
        pricing = calculate_pricing(subtotal, self.tax_rate)

        return QuoteRequest(
            number=generate_quote_number(session.user_id, moment),
            issue_date=moment.strftime("%d.%m.%Y"),
            client_name=data.client_legal_name or data.client_name or MISSING,
            client_tax_id=_or_missing(data.client_tax_id),
            client_address=_or_missing(data.client_address),
            description=_or_missing(data.description),
            weight_kg=format_weight(data.weight_kg),
            pickup=_or_missing(data.pickup_address),
            dropoff=_or_missing(data.dropoff_address),
            service_date=_or_missing(data.service_date),
            permits=_or_missing(data.permits),
            email=_or_missing(data.email),
            subtotal=pricing.subtotal,
            tax=pricing.tax,
            total=pricing.total,
            tax_rate=self.tax_rate,
            footer_notes=self.footer_notes,
            company_name=self.company_name,
            logo_url=self.logo_url,
        )

    async def deliver(self, quote: QuoteRequest, user_id: str, caption: str = "") -> DeliveredQuote:
        """
        Render the quote, then send it to the user as a document.

        Raises:
            RenderError: If the PDF could not be produced (nothing is sent)
            ChannelError: If the document message could not be sent
        """
        document_ref = await self.renderer.render(quote)
        link = f"{self.public_base_url}{document_ref}" if document_ref.startswith("/") else document_ref
        filename = PurePosixPath(document_ref).name

        await self.channel.send_document(user_id, link, filename, caption)
        logger.info(
            f"Quote {quote.number} sent to {user_id} "
            f"(subtotal={quote.subtotal}, tax={quote.tax}, total={quote.total})"
        )
        return DeliveredQuote(number=quote.number, link=link, filename=filename)

    async def assemble_and_deliver(
        self,
        session: Session,
        subtotal: Decimal,
        caption: str = "",
        now: datetime | None = None,
    ) -> DeliveredQuote:
        quote = self.assemble(session, subtotal, now=now)
        return await self.deliver(quote, session.user_id, caption)
