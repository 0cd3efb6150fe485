"""Domain-specific exceptions"""

from typing import Any, Dict, Optional


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """Required field missing or malformed"""

    pass


class NotFoundError(DomainException):
    """Entity does not exist or is not visible to the caller"""

    def __init__(self, kind: str, entity_id: str):
        super().__init__(f"{kind.capitalize()} not found: {entity_id}")
        self.kind = kind
        self.entity_id = entity_id


class OfferAlreadyAcceptedError(DomainException):
    """Offer accepted on an invoice that is no longer in uploaded status"""

    pass


class AlreadySettledError(DomainException):
    """Advance was already marked paid"""

    pass


class StoreUnavailableError(DomainException):
    """Persistence layer failed transiently; safe to retry"""

    pass


class ExtractionFailedError(DomainException):
    """Extractor errored or returned a low-confidence draft"""

    def __init__(self, message: str, draft: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.draft = draft
