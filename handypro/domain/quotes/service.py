"""Quote request service - stores requests and notifies staff"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import INTERNAL_NOTIFICATION_EMAILS
from ...email_service import send_quote_request_notification
from ...models import QuoteRequest, Service
from ...utils.sanitization import sanitize_fields, sanitize_multiline
from .repository import QuoteRequestRepository
from .schemas import QuoteRequestCreate

logger = logging.getLogger(__name__)


class QuoteRequestService:
    def __init__(self, db: Session, internal_recipients: list[str] = INTERNAL_NOTIFICATION_EMAILS):
        self.db = db
        self.internal_recipients = internal_recipients
        self.repo = QuoteRequestRepository()

    def get_quote_requests(self) -> list[QuoteRequest]:
        return self.repo.get_quote_requests(self.db)

    async def create_quote_request(self, data: QuoteRequestCreate) -> tuple[QuoteRequest, bool]:
        """Persist the request, then email staff; returns (quote, notification_sent)"""
        service = self.db.query(Service).filter(Service.id == data.serviceId).first()
        if not service:
            raise HTTPException(status_code=404, detail="Service not found")

        quote = self.repo.create_quote_request(
            self.db,
            name=data.name,
            email=data.email,
            phone=data.phone,
            service_id=data.serviceId,
            description=data.description,
            address=data.address,
        )
        logger.info(f"✅ Quote request {quote.id} saved for service {service.id}")

        if not self.internal_recipients:
            logger.warning("⚠️ INTERNAL_NOTIFICATION_EMAILS not set - quote request not emailed")
            return quote, False

        fields = sanitize_fields(
            {
                "name": quote.name,
                "email": quote.email,
                "phone": quote.phone,
                "service_name": service.name,
                "address": quote.address,
            }
        )
        try:
            await send_quote_request_notification(
                recipients=self.internal_recipients,
                description=sanitize_multiline(quote.description),
                **fields,
            )
            return quote, True
        except Exception as e:
            logger.error(f"❌ Failed to send quote notification for request {quote.id}: {e}")
            return quote, False
