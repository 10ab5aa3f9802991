"""
Line and document totals for quotations.

All money is Decimal rounded half-up to 2 decimals. Line margin
percentage is measured on cost, not on price:
``(unit_price - unit_cost) / unit_cost * 100``.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional

from catalog.services.margins import effective_margins, margins_for_product
from core.exceptions import ConfigurationError, InvalidDiscount, MarginBelowMinimum, QuotationValidationError
from core.money import HUNDRED, ZERO, percentage, q2, to_decimal
from core.services.settings import get_decimal_setting, get_setting

logger = logging.getLogger(__name__)

COMMISSION_BASES = ("margin", "subtotal", "total")


@dataclass(frozen=True)
class LineTotals:
    quantity: int
    unit_price: Decimal
    unit_cost: Decimal
    discount: Decimal
    discount_percentage: Decimal
    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal
    total_cost: Decimal
    unit_margin: Decimal
    total_margin: Decimal
    margin_percentage: Decimal


@dataclass(frozen=True)
class DocumentTotals:
    subtotal: Decimal
    discount: Decimal
    coupon_discount: Decimal
    tax: Decimal
    shipping_cost: Decimal
    packaging_cost: Decimal
    assembly_cost: Decimal
    total: Decimal
    total_cost: Decimal
    total_margin: Decimal
    margin_percentage: Decimal
    commission_percentage: Decimal
    commission_amount: Decimal


def _non_negative(name: str, value) -> Decimal:
    value = to_decimal(value)
    if value < 0:
        raise QuotationValidationError(f"{name} must be >= 0 (got {value})", field=name)
    return value


def compute_line(unit_price, quantity, discount, unit_cost, tax_rate) -> LineTotals:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise QuotationValidationError(f"quantity must be an integer >= 1 (got {quantity!r})", field="quantity")
    # 금액은 계산 전에 2자리로 맞춘다 (저장 값 = 계산 값)
    unit_price = q2(_non_negative("unit_price", unit_price))
    discount = q2(_non_negative("discount", discount))
    unit_cost = q2(_non_negative("unit_cost", unit_cost))
    tax_rate = _non_negative("tax_rate", tax_rate)

    gross = unit_price * quantity
    subtotal = q2(gross - discount)
    if subtotal < 0:
        raise InvalidDiscount(
            f"discount {q2(discount)} exceeds line amount {q2(gross)}",
            field="discount",
        )

    tax_amount = q2(subtotal * tax_rate)
    total_cost = q2(unit_cost * quantity)

    return LineTotals(
        quantity=quantity,
        unit_price=q2(unit_price),
        unit_cost=q2(unit_cost),
        discount=q2(discount),
        discount_percentage=percentage(discount, gross),
        subtotal=subtotal,
        tax_amount=tax_amount,
        total=subtotal + tax_amount,
        total_cost=total_cost,
        unit_margin=q2(unit_price - unit_cost),
        total_margin=subtotal - total_cost,
        margin_percentage=percentage(unit_price - unit_cost, unit_cost),
    )


def _commission_base(basis: str, total_margin: Decimal, subtotal: Decimal, total: Decimal) -> Decimal:
    if basis == "margin":
        return total_margin
    if basis == "subtotal":
        return subtotal
    if basis == "total":
        return total
    raise ConfigurationError(f"Unknown commission basis {basis!r}; expected one of {COMMISSION_BASES}")


def aggregate_totals(
    lines: Iterable,
    *,
    shipping_cost=0,
    packaging_cost=0,
    assembly_cost=0,
    discount=0,
    coupon=None,
    commission_percentage=0,
    commission_basis: Optional[str] = None,
    day=None,
) -> DocumentTotals:
    """
    lines: anything with subtotal / tax_amount / total_cost / total_margin
    (LineTotals or QuotationDetail rows).
    coupon: object exposing calculate_discount(amount, day); validity and
    usage limits are the coupon's business.
    """
    shipping_cost = _non_negative("shipping_cost", shipping_cost)
    packaging_cost = _non_negative("packaging_cost", packaging_cost)
    assembly_cost = _non_negative("assembly_cost", assembly_cost)
    discount = _non_negative("discount", discount)
    commission_percentage = _non_negative("commission_percentage", commission_percentage)
    if commission_basis is None:
        commission_basis = get_setting("commissions", "calculate_on")

    subtotal = tax = total_cost = margin_pre_discount = ZERO
    for line in lines:
        subtotal += to_decimal(line.subtotal)
        tax += to_decimal(line.tax_amount)
        total_cost += to_decimal(line.total_cost)
        margin_pre_discount += to_decimal(line.total_margin)

    coupon_discount = ZERO
    if coupon is not None:
        coupon_discount = min(q2(coupon.calculate_discount(subtotal, day)), subtotal)

    if discount + coupon_discount > subtotal:
        raise InvalidDiscount(
            f"discount {q2(discount)} plus coupon {coupon_discount} exceeds subtotal {q2(subtotal)}",
            field="discount",
        )

    total = q2(subtotal - discount - coupon_discount + tax + shipping_cost + packaging_cost + assembly_cost)
    total_margin = q2(margin_pre_discount - discount - coupon_discount)
    base = _commission_base(commission_basis, total_margin, q2(subtotal), total)

    return DocumentTotals(
        subtotal=q2(subtotal),
        discount=q2(discount),
        coupon_discount=q2(coupon_discount),
        tax=q2(tax),
        shipping_cost=q2(shipping_cost),
        packaging_cost=q2(packaging_cost),
        assembly_cost=q2(assembly_cost),
        total=total,
        total_cost=q2(total_cost),
        total_margin=total_margin,
        margin_percentage=percentage(total_margin, total_cost),
        commission_percentage=q2(commission_percentage),
        commission_amount=q2(base * commission_percentage / HUNDRED),
    )


def enforce_margin_floors(entries: Iterable, totals: Optional[DocumentTotals] = None) -> None:
    """
    entries: (line_id, product, line) tuples; line has unit_cost / margin_percentage.
    line_id is None for a line that is not saved yet; product_ids identifies it.

    - each line against its category's effective min margin
    - the document against the single category's floor, or the global
      minimum when lines span several categories
    Lines or documents without a cost basis are not evaluated.
    """
    if not get_setting("margins", "alert_low_margin"):
        return

    entries = list(entries)
    violations = []
    for line_id, product, line in entries:
        if to_decimal(line.unit_cost) <= 0:
            continue
        floor = margins_for_product(product).min_margin
        if to_decimal(line.margin_percentage) < floor:
            violations.append({
                "line_id": line_id,
                "product_id": product.pk,
                "product_name": product.name,
                "margin_percentage": q2(line.margin_percentage),
                "minimum_margin": floor,
            })

    if violations:
        first = violations[0]
        logger.warning("Margin floor violated on %d line(s): %s", len(violations), violations)
        raise MarginBelowMinimum(
            f"Product '{first['product_name']}' has a margin of {first['margin_percentage']}% "
            f"which is below the minimum allowed ({first['minimum_margin']}%)",
            actual_margin=first["margin_percentage"],
            minimum_margin=first["minimum_margin"],
            line_ids=[v["line_id"] for v in violations if v["line_id"] is not None],
            product_ids=[v["product_id"] for v in violations],
            violations=[{k: str(v) if isinstance(v, Decimal) else v for k, v in row.items()} for row in violations],
        )

    if totals is None or totals.total_cost <= 0:
        return

    category_ids = {product.category_id for _, product, _ in entries}
    if len(category_ids) == 1 and None not in category_ids:
        floor = effective_margins(entries[0][1].category).min_margin
    else:
        floor = get_decimal_setting("margins", "min_margin_percentage")

    if totals.margin_percentage < floor:
        logger.warning("Document margin %s%% below floor %s%%", totals.margin_percentage, floor)
        raise MarginBelowMinimum(
            f"Quotation margin of {totals.margin_percentage}% is below the minimum allowed ({floor}%)",
            actual_margin=totals.margin_percentage,
            minimum_margin=floor,
            line_ids=[],
            scope="document",
        )


def calculate_totals_preview(
    items: Iterable[dict],
    *,
    shipping_cost=0,
    packaging_cost=0,
    assembly_cost=0,
    discount=0,
    coupon=None,
    commission_percentage=0,
    tax_rate=None,
) -> dict:
    """
    저장 없이 합계만 미리 계산.
    items: [{"unit_price", "quantity", "discount"?, "unit_cost"?}, ...]
    """
    if tax_rate is None:
        tax_rate = get_decimal_setting("taxes", "igv_rate")
    lines = [
        compute_line(
            item["unit_price"],
            item["quantity"],
            item.get("discount", 0),
            item.get("unit_cost", 0),
            tax_rate,
        )
        for item in items
    ]
    totals = aggregate_totals(
        lines,
        shipping_cost=shipping_cost,
        packaging_cost=packaging_cost,
        assembly_cost=assembly_cost,
        discount=discount,
        coupon=coupon,
        commission_percentage=commission_percentage,
    )
    return {"lines": lines, "totals": totals}
