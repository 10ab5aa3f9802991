from datetime import date
from decimal import Decimal

import pytest

from core.exceptions import ConfigurationError
from core.services.settings import get_setting, set_setting
from fx.models import ExchangeRatePeriod
from fx.services import rate_for


def test_defaults_from_settings_module(db):
    assert get_setting("quotations", "default_validity_days") == 15
    assert get_setting("taxes", "igv_rate") == Decimal("0.18")


def test_row_overrides_default(db):
    set_setting("quotations", "default_validity_days", "30", "integer")

    assert get_setting("quotations", "default_validity_days") == 30


def test_missing_setting(db):
    with pytest.raises(ConfigurationError):
        get_setting("quotations", "no_such_key")
    assert get_setting("quotations", "no_such_key", "x") == "x"


def test_unparseable_row(db):
    set_setting("margins", "min_margin_percentage", "diez", "decimal")

    with pytest.raises(ConfigurationError):
        get_setting("margins", "min_margin_percentage")


def test_validity_days_setting_is_used(make_quotation):
    set_setting("quotations", "default_validity_days", "7", "integer")

    q = make_quotation()

    assert (q.valid_until - q.quotation_date).days == 7


def test_rate_for(db):
    ExchangeRatePeriod.objects.create(
        currency="USD", start_date=date(2026, 1, 1), end_date=date(2026, 6, 30), rate_to_pen=Decimal("3.72")
    )
    ExchangeRatePeriod.objects.create(currency="USD", start_date=date(2026, 7, 1), rate_to_pen=Decimal("3.80"))

    assert rate_for("PEN", date(2026, 3, 1)) == Decimal("1")
    assert rate_for("USD", date(2026, 3, 1)) == Decimal("3.72")
    assert rate_for("USD", date(2026, 9, 1)) == Decimal("3.80")
    assert rate_for("USD", date(2025, 12, 31)) == Decimal("3.75")
