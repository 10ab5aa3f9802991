from decimal import Decimal

from django.db.models import Q

from core.services.settings import get_decimal_setting, get_setting
from fx.models import ExchangeRatePeriod


def rate_for(currency: str, on_date) -> Decimal:
    """
    Exchange rate snapshot for a quotation.
    - base currency -> 1
    - a period covering on_date -> its rate (latest start wins)
    - otherwise currency.default_exchange_rate
    """
    if currency == get_setting("currency", "default_currency"):
        return Decimal("1.0000")

    period = (
        ExchangeRatePeriod.objects
        .filter(currency=currency, start_date__lte=on_date)
        .filter(Q(end_date__isnull=True) | Q(end_date__gte=on_date))
        .order_by("-start_date")
        .first()
    )
    if period is not None:
        return period.rate_to_pen
    return get_decimal_setting("currency", "default_exchange_rate")
