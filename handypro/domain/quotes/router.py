"""Quote request router"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import User
from ...rate_limiter import create_rate_limiter
from .schemas import QuoteRequestCreate, QuoteRequestResponse
from .service import QuoteRequestService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quote-requests", tags=["Quote Requests"])

quote_rate_limit = create_rate_limiter(limit=10, window_seconds=3600, key_prefix="quote_requests")


def get_quote_service(db: Session = Depends(get_db)) -> QuoteRequestService:
    """Dependency injection for QuoteRequestService"""
    return QuoteRequestService(db)


@router.post("", response_model=QuoteRequestResponse, status_code=201)
async def create_quote_request(
    data: QuoteRequestCreate,
    service: QuoteRequestService = Depends(get_quote_service),
    _: None = Depends(quote_rate_limit),
):
    """Submit a quote request; staff are emailed when notifications are configured"""
    quote, _sent = await service.create_quote_request(data)
    return QuoteRequestResponse.from_quote_request(quote)


@router.get("", response_model=list[QuoteRequestResponse])
async def get_quote_requests(
    _admin: User = Depends(require_admin),
    service: QuoteRequestService = Depends(get_quote_service),
):
    return [QuoteRequestResponse.from_quote_request(q) for q in service.get_quote_requests()]


__all__ = ["router", "get_quote_service", "create_quote_request", "get_quote_requests"]
