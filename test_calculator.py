from decimal import Decimal
from types import SimpleNamespace

import pytest

from core.exceptions import ConfigurationError, InvalidDiscount, QuotationValidationError
from pricing.services.calculator import aggregate_totals, calculate_totals_preview, compute_line

D = Decimal


@pytest.mark.parametrize(
    "unit_price, quantity, discount, unit_cost",
    [
        (D("650.00"), 2, D("0"), D("500.00")),
        (D("19.99"), 7, D("3.33"), D("12.40")),
        (D("0.01"), 1, D("0"), D("0")),
        (D("1234.57"), 13, D("100.05"), D("999.99")),
    ],
)
def test_line_total_identity(unit_price, quantity, discount, unit_cost):
    line = compute_line(unit_price, quantity, discount, unit_cost, D("0.18"))

    assert line.subtotal == (unit_price * quantity - discount).quantize(D("0.01"))
    assert line.total == line.subtotal + line.tax_amount
    assert line.total_margin == line.subtotal - line.total_cost


def test_line_values():
    line = compute_line(D("650"), 2, D("130"), D("500"), D("0.18"))

    assert line.subtotal == D("1170.00")
    assert line.tax_amount == D("210.60")
    assert line.discount_percentage == D("10.00")
    assert line.unit_margin == D("150.00")
    assert line.margin_percentage == D("30.00")


def test_zero_cost_has_zero_margin_percentage():
    assert compute_line(D("10"), 1, 0, 0, D("0.18")).margin_percentage == D("0.00")


def test_discount_above_line_amount():
    with pytest.raises(InvalidDiscount):
        compute_line(D("10"), 2, D("20.01"), D("5"), D("0.18"))


@pytest.mark.parametrize("kwargs", [{"quantity": 0}, {"discount": D("-1")}, {"unit_price": D("-5")}])
def test_invalid_line_input(kwargs):
    args = {"unit_price": D("10"), "quantity": 1, "discount": D("0"), "unit_cost": D("5"), "tax_rate": D("0.18")}
    args.update(kwargs)
    with pytest.raises(QuotationValidationError):
        compute_line(**args)


def _lines():
    return [
        compute_line(D("650"), 2, 0, D("500"), D("0.18")),
        compute_line(D("35.90"), 3, D("5"), D("21.10"), D("0.18")),
    ]


def test_document_total_identity(db):
    totals = aggregate_totals(
        _lines(),
        shipping_cost=D("25"),
        packaging_cost=D("4.50"),
        assembly_cost=D("12"),
        discount=D("40"),
        commission_percentage=D("3"),
    )

    expected = (
        totals.subtotal - totals.discount - totals.coupon_discount + totals.tax
        + totals.shipping_cost + totals.packaging_cost + totals.assembly_cost
    )
    assert abs(totals.total - expected) <= D("0.01")
    assert totals.subtotal == D("1402.70")
    assert totals.total_cost == D("1063.30")


def test_coupon_discount_and_margin(db):
    coupon = SimpleNamespace(calculate_discount=lambda amount, day=None: amount * D("0.10"))

    totals = aggregate_totals(_lines()[:1], coupon=coupon, commission_percentage=D("3"))

    assert totals.coupon_discount == D("130.00")
    assert totals.total == D("1404.00")
    assert totals.total_margin == D("170.00")
    assert totals.margin_percentage == D("17.00")
    assert totals.commission_amount == D("5.10")


def test_discount_plus_coupon_above_subtotal(db):
    coupon = SimpleNamespace(calculate_discount=lambda amount, day=None: D("100"))

    with pytest.raises(InvalidDiscount):
        aggregate_totals(_lines()[:1], discount=D("1250"), coupon=coupon)


@pytest.mark.parametrize("basis, expected", [("margin", D("9.00")), ("subtotal", D("39.00")), ("total", D("46.02"))])
def test_commission_basis(db, basis, expected):
    totals = aggregate_totals(_lines()[:1], commission_percentage=D("3"), commission_basis=basis)

    assert totals.commission_amount == expected


def test_unknown_commission_basis(db):
    with pytest.raises(ConfigurationError):
        aggregate_totals(_lines()[:1], commission_basis="profit")


def test_preview_does_not_persist(db):
    result = calculate_totals_preview(
        [{"unit_price": D("100"), "quantity": 3, "unit_cost": D("70")}],
        shipping_cost=D("10"),
    )

    assert result["lines"][0].subtotal == D("300.00")
    assert result["totals"].tax == D("54.00")
    assert result["totals"].total == D("364.00")


def test_money_inputs_are_rounded_before_arithmetic():
    line = compute_line(D("650.005"), 100, D("0.004"), D("499.995"), D("0.18"))

    assert line.unit_price == D("650.01")
    assert line.unit_cost == D("500.00")
    assert line.subtotal == line.unit_price * line.quantity - line.discount
    assert line.total_cost == line.unit_cost * line.quantity
    assert line.unit_margin == line.unit_price - line.unit_cost
