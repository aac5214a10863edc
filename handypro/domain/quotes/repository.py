"""Quote request repository"""

from sqlalchemy.orm import Session

from ...models import QuoteRequest


class QuoteRequestRepository:
    @staticmethod
    def create_quote_request(db: Session, **quote_data) -> QuoteRequest:
        quote = QuoteRequest(**quote_data)
        db.add(quote)
        db.commit()
        db.refresh(quote)
        return quote

    @staticmethod
    def get_quote_requests(db: Session) -> list[QuoteRequest]:
        """All quote requests, newest first"""
        return db.query(QuoteRequest).order_by(QuoteRequest.created_at.desc(), QuoteRequest.id.desc()).all()
