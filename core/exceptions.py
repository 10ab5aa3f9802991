"""
Errors raised by the quotation engine.

Every error carries a stable ``code`` and can render itself with
``to_dict()`` so the request boundary returns a structured payload.
All of them are raised from inside ``transaction.atomic`` blocks, so
nothing is left half-written when one propagates.
"""

from decimal import Decimal


class EngineError(Exception):
    code = "engine_error"

    def __init__(self, message: str = "", **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        payload = {"error": self.code, "message": self.message}
        for key, value in self.details.items():
            payload[key] = str(value) if isinstance(value, Decimal) else value
        return payload


class QuotationValidationError(EngineError):
    """Malformed input such as quantity < 1 or a negative amount."""
    code = "validation_error"


class InvalidDiscount(QuotationValidationError):
    code = "invalid_discount"


class NoPriceSource(EngineError):
    code = "no_price_source"


class MarginBelowMinimum(EngineError):
    code = "low_margin"

    def __init__(self, message: str, *, actual_margin: Decimal, minimum_margin: Decimal, line_ids=None, **details):
        super().__init__(
            message,
            actual_margin=actual_margin,
            minimum_margin=minimum_margin,
            line_ids=list(line_ids or []),
            **details,
        )
        self.actual_margin = actual_margin
        self.minimum_margin = minimum_margin
        self.line_ids = list(line_ids or [])


class InvalidStatus(EngineError):
    code = "invalid_status"


class AlreadyConverted(InvalidStatus):
    code = "already_converted"


class StaleAvailability(EngineError):
    code = "stale_availability"

    def __init__(self, message: str, *, issues=None):
        super().__init__(message, issues=list(issues or []))
        self.issues = list(issues or [])


class ConfigurationError(EngineError):
    """Data-integrity problem (category cycle, missing defaults). Operators must see it."""
    code = "configuration_error"


class ConcurrencyConflict(EngineError):
    code = "concurrency_conflict"


class CouponUnavailable(EngineError):
    code = "coupon_unavailable"
