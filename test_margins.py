from decimal import Decimal

import pytest

from catalog.models import Category, Product
from catalog.services.margins import effective_margins, suggest_price, validate_proposed_price
from core.exceptions import ConfigurationError
from core.services.settings import set_setting


@pytest.fixture
def chain(db):
    c1 = Category.objects.create(name="Tecnologia", level=1)
    c2 = Category.objects.create(name="Computo", level=2, parent=c1)
    c3 = Category.objects.create(name="Notebooks", level=3, parent=c2)
    return c1, c2, c3


def test_min_margin_inherited_from_root(chain):
    c1, _, c3 = chain
    c1.min_margin_percentage = Decimal("15")
    c1.save()

    assert effective_margins(c3).min_margin == Decimal("15.00")


def test_system_defaults_when_nothing_set(chain):
    margins = effective_margins(chain[2])

    assert margins.min_margin == Decimal("10.00")
    assert margins.normal_margin == Decimal("20.00")


def test_min_and_normal_resolve_independently(chain):
    c1, c2, c3 = chain
    c1.normal_margin_percentage = Decimal("35")
    c1.save()
    c2.min_margin_percentage = Decimal("12")
    c2.save()

    margins = effective_margins(Category.objects.get(pk=c3.pk))

    assert margins.min_margin == Decimal("12.00")
    assert margins.normal_margin == Decimal("35.00")


def test_own_value_wins_over_parent(chain):
    c1, _, c3 = chain
    c1.min_margin_percentage = Decimal("15")
    c1.save()
    c3.min_margin_percentage = Decimal("8")
    c3.save()

    assert effective_margins(c3).min_margin == Decimal("8.00")


def test_no_category_uses_defaults(db):
    assert effective_margins(None).min_margin == Decimal("10.00")


def test_defaults_come_from_setting_rows(db):
    set_setting("margins", "min_margin_percentage", "12.5", "decimal")

    assert effective_margins(None).min_margin == Decimal("12.50")


def test_cycle_is_a_configuration_error(chain):
    c1, _, c3 = chain
    Category.objects.filter(pk=c1.pk).update(parent=c3)

    with pytest.raises(ConfigurationError):
        effective_margins(Category.objects.get(pk=c3.pk))


def test_suggest_price_rounds_half_up():
    assert suggest_price(Decimal("500"), Decimal("10")) == Decimal("550.00")
    assert suggest_price(Decimal("33.33"), Decimal("15")) == Decimal("38.33")


def test_validate_proposed_price(category):
    product = Product.objects.create(sku="MON-24", name="Monitor 24", category=category)

    low = validate_proposed_price(product, Decimal("520"), Decimal("500"))
    ok = validate_proposed_price(product, Decimal("550"), Decimal("500"))

    assert low["is_valid"] is False
    assert low["calculated_margin"] == Decimal("4.00")
    assert low["suggested_min_price"] == Decimal("550.00")
    assert ok["is_valid"] is True
    assert ok["suggested_price"] == Decimal("600.00")
    assert ok["category"] == "Computo"
