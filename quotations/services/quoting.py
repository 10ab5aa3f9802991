import logging
from datetime import timedelta
from decimal import Decimal
from typing import Iterable, Optional

from django.db import IntegrityError, transaction
from django.utils import timezone

from catalog.models import Product
from catalog.services.margins import margins_for_product
from core.exceptions import ConcurrencyConflict, QuotationValidationError
from core.money import to_decimal
from core.services.settings import get_decimal_setting, get_setting
from fx.services import rate_for
from inventory.models import PriceList, Warehouse
from partners.models import Partner
from pricing.services.calculator import aggregate_totals, compute_line, enforce_margin_floors
from pricing.services.coupons import find_coupon
from pricing.services.sourcing import resolve_price_source
from quotations.models import Quotation, QuotationDetail
from quotations.services.locking import ensure_editable, lock_quotation

logger = logging.getLogger(__name__)

CODE_PREFIX = "COT"

TOTAL_FIELDS = [
    "subtotal",
    "discount",
    "coupon_discount",
    "tax",
    "shipping_cost",
    "packaging_cost",
    "assembly_cost",
    "total",
    "total_cost",
    "total_margin",
    "margin_percentage",
    "commission_amount",
    "updated_at",
]


def generate_code(year: Optional[int] = None) -> str:
    """COT-{year}-{000001} : 해당 연도 마지막 번호 + 1"""
    year = year or timezone.localdate().year
    prefix = f"{CODE_PREFIX}-{year}-"
    last = (
        Quotation.objects
        .filter(code__startswith=prefix)
        .order_by("-code")
        .values_list("code", flat=True)
        .first()
    )
    number = int(last[-6:]) + 1 if last else 1
    return f"{prefix}{number:06d}"


def _tax_rate() -> Decimal:
    return get_decimal_setting("taxes", "igv_rate")


def _product(value) -> Product:
    if isinstance(value, Product):
        return value
    return Product.objects.select_related("category").get(pk=value)


def _build_line(
    quotation: Quotation,
    product: Product,
    quantity: int,
    unit_price=None,
    discount=0,
    notes: str = "",
    price_list: Optional[PriceList] = None,
) -> QuotationDetail:
    if not product.is_active:
        raise QuotationValidationError(f"Product {product.sku} is inactive", field="product_id")

    source = resolve_price_source(product, quotation.warehouse, quantity, price_list)
    price = source.unit_price if unit_price is None else unit_price
    totals = compute_line(price, quantity, discount, source.unit_cost, _tax_rate())

    # 라인 저장 전에 마진 하한 검사
    enforce_margin_floors([(None, product, totals)])

    detail = QuotationDetail(
        quotation=quotation,
        product=product,
        product_name=product.name,
        product_sku=product.sku,
        product_brand=product.brand,
        distribution_price=product.distribution_price or None,
        notes=notes,
    )
    detail.apply_source(source)
    detail.apply_totals(totals)
    detail.save()
    return detail


def recalculate_totals(quotation: Quotation):
    """
    라인 합계 -> 문서 합계, 마진 하한 검사 후 저장.
    호출자가 이미 견적 row lock을 잡고 있어야 한다.
    """
    details = list(quotation.details.select_related("product__category"))
    totals = aggregate_totals(
        details,
        shipping_cost=quotation.shipping_cost,
        packaging_cost=quotation.packaging_cost,
        assembly_cost=quotation.assembly_cost,
        discount=quotation.discount,
        coupon=quotation.coupon,
        commission_percentage=quotation.commission_percentage,
    )
    enforce_margin_floors([(d.pk, d.product, d) for d in details], totals)

    for field in TOTAL_FIELDS[:-1]:
        setattr(quotation, field, getattr(totals, field))
    quotation.save(update_fields=TOTAL_FIELDS)
    return totals


@transaction.atomic
def create_quotation(
    *,
    seller,
    customer: Partner,
    warehouse: Warehouse,
    items: Iterable[dict] = (),
    valid_days: Optional[int] = None,
    currency: Optional[str] = None,
    exchange_rate=None,
    commission_percentage=None,
    shipping_cost=0,
    packaging_cost=0,
    assembly_cost=0,
    discount=0,
    coupon_code: Optional[str] = None,
    observations: str = "",
    price_list: Optional[PriceList] = None,
) -> Quotation:
    """
    items: [{"product": Product|id, "quantity": int, "unit_price"?, "discount"?, "notes"?}, ...]
    """
    if customer.partner_type != Partner.PartnerType.CUSTOMER:
        raise QuotationValidationError(f"{customer} is not a customer", field="customer_id")

    if valid_days is None:
        valid_days = int(get_setting("quotations", "default_validity_days"))
    if valid_days < 1:
        raise QuotationValidationError("valid_days must be >= 1", field="valid_days")

    today = timezone.localdate()
    currency = currency or get_setting("currency", "default_currency")
    if exchange_rate is None:
        exchange_rate = rate_for(currency, today)
    if commission_percentage is None:
        commission_percentage = get_decimal_setting("commissions", "default_percentage")

    coupon = find_coupon(coupon_code, today) if coupon_code else None

    try:
        with transaction.atomic():
            quotation = Quotation.objects.create(
                code=generate_code(today.year),
                seller=seller,
                customer=customer,
                warehouse=warehouse,
                coupon=coupon,
                customer_name=customer.name,
                customer_document=customer.document_number,
                customer_email=customer.email,
                customer_phone=customer.phone,
                currency=currency,
                exchange_rate=to_decimal(exchange_rate),
                commission_percentage=to_decimal(commission_percentage),
                shipping_cost=to_decimal(shipping_cost),
                packaging_cost=to_decimal(packaging_cost),
                assembly_cost=to_decimal(assembly_cost),
                discount=to_decimal(discount),
                quotation_date=today,
                valid_until=today + timedelta(days=valid_days),
                observations=observations,
            )
    except IntegrityError as exc:
        raise ConcurrencyConflict("Quotation code collision; retry.") from exc

    for item in items:
        _build_line(
            quotation,
            _product(item["product"]),
            item["quantity"],
            unit_price=item.get("unit_price"),
            discount=item.get("discount", 0),
            notes=item.get("notes", ""),
            price_list=price_list,
        )

    recalculate_totals(quotation)
    logger.info("Created quotation %s for %s (%d lines)", quotation.code, customer, quotation.details.count())
    return quotation


@transaction.atomic
def add_line_item(
    quotation_id: int,
    *,
    product,
    quantity: int,
    unit_price=None,
    discount=0,
    notes: str = "",
    price_list: Optional[PriceList] = None,
) -> QuotationDetail:
    quotation = lock_quotation(quotation_id)
    ensure_editable(quotation)

    detail = _build_line(quotation, _product(product), quantity, unit_price, discount, notes, price_list)
    recalculate_totals(quotation)
    return detail


@transaction.atomic
def update_line_quantity(quotation_id: int, detail_id: int, quantity: int) -> QuotationDetail:
    """
    수량 변경: 새 수량 기준으로 공급원을 다시 잡고(재고가 바뀌므로),
    단가/할인은 라인 값을 유지한다.
    """
    quotation = lock_quotation(quotation_id)
    ensure_editable(quotation)
    detail = quotation.details.select_related("product__category").get(pk=detail_id)

    source = resolve_price_source(detail.product, quotation.warehouse, quantity)
    totals = compute_line(detail.unit_price, quantity, detail.discount, source.unit_cost, _tax_rate())
    enforce_margin_floors([(detail.pk, detail.product, totals)])

    detail.apply_source(source)
    detail.apply_totals(totals)
    detail.save()
    recalculate_totals(quotation)
    return detail


@transaction.atomic
def update_line_price(quotation_id: int, detail_id: int, *, unit_price=None, discount=None) -> QuotationDetail:
    quotation = lock_quotation(quotation_id)
    ensure_editable(quotation)
    detail = quotation.details.select_related("product__category").get(pk=detail_id)

    totals = compute_line(
        detail.unit_price if unit_price is None else unit_price,
        detail.quantity,
        detail.discount if discount is None else discount,
        detail.unit_cost,
        _tax_rate(),
    )
    enforce_margin_floors([(detail.pk, detail.product, totals)])

    detail.apply_totals(totals)
    detail.save()
    recalculate_totals(quotation)
    return detail


@transaction.atomic
def remove_line_item(quotation_id: int, detail_id: int) -> Quotation:
    quotation = lock_quotation(quotation_id)
    ensure_editable(quotation)
    quotation.details.get(pk=detail_id).delete()
    recalculate_totals(quotation)
    return quotation


@transaction.atomic
def update_charges(
    quotation_id: int,
    *,
    shipping_cost=None,
    packaging_cost=None,
    assembly_cost=None,
    discount=None,
) -> Quotation:
    quotation = lock_quotation(quotation_id)
    ensure_editable(quotation)
    for field, value in (
        ("shipping_cost", shipping_cost),
        ("packaging_cost", packaging_cost),
        ("assembly_cost", assembly_cost),
        ("discount", discount),
    ):
        if value is not None:
            setattr(quotation, field, to_decimal(value))
    recalculate_totals(quotation)
    return quotation


@transaction.atomic
def apply_coupon(quotation_id: int, code: Optional[str]) -> Quotation:
    """code=None 이면 쿠폰 해제. 사용 횟수 차감은 판매 전환 시점."""
    quotation = lock_quotation(quotation_id)
    ensure_editable(quotation)
    quotation.coupon = find_coupon(code) if code else None
    quotation.save(update_fields=["coupon", "updated_at"])
    recalculate_totals(quotation)
    return quotation


@transaction.atomic
def duplicate_quotation(quotation_id: int, seller=None) -> Quotation:
    """
    복제본은 새 코드/오늘 날짜의 draft. 라인 스냅샷(공급원, 단가)은 그대로 복사하고
    합계는 다시 계산한다.
    """
    original = Quotation.objects.get(pk=quotation_id, is_deleted=False)
    today = timezone.localdate()
    validity = original.valid_until - original.quotation_date

    try:
        with transaction.atomic():
            copy = Quotation.objects.create(
                code=generate_code(today.year),
                seller=seller or original.seller,
                customer_id=original.customer_id,
                warehouse_id=original.warehouse_id,
                coupon_id=original.coupon_id,
                customer_name=original.customer_name,
                customer_document=original.customer_document,
                customer_email=original.customer_email,
                customer_phone=original.customer_phone,
                currency=original.currency,
                exchange_rate=original.exchange_rate,
                commission_percentage=original.commission_percentage,
                shipping_cost=original.shipping_cost,
                packaging_cost=original.packaging_cost,
                assembly_cost=original.assembly_cost,
                discount=original.discount,
                quotation_date=today,
                valid_until=today + max(validity, timedelta(days=1)),
                observations=original.observations,
            )
    except IntegrityError as exc:
        raise ConcurrencyConflict("Quotation code collision; retry.") from exc

    details = list(original.details.all())
    for detail in details:
        detail.pk = None
        detail.id = None
        detail.quotation = copy
        detail._state.adding = True
    QuotationDetail.objects.bulk_create(details)

    recalculate_totals(copy)
    logger.info("Duplicated quotation %s as %s", original.code, copy.code)
    return copy


def margins_breakdown(quotation: Quotation) -> dict:
    items = []
    total_cost = Decimal("0")
    total_price = Decimal("0")
    low = 0
    for detail in quotation.details.select_related("product__category"):
        floor = margins_for_product(detail.product).min_margin
        is_low = detail.unit_cost > 0 and detail.margin_percentage < floor
        low += int(is_low)
        total_cost += detail.total_cost
        total_price += detail.subtotal
        items.append({
            "detail_id": detail.pk,
            "product_name": detail.product_name,
            "quantity": detail.quantity,
            "unit_cost": detail.unit_cost,
            "unit_price": detail.unit_price,
            "unit_margin": detail.unit_margin,
            "total_cost": detail.total_cost,
            "total_price": detail.subtotal,
            "total_margin": detail.total_margin,
            "margin_percentage": detail.margin_percentage,
            "category_min_margin": floor,
            "margin_status": "low" if is_low else "ok",
        })
    return {
        "quotation_id": quotation.pk,
        "quotation_code": quotation.code,
        "total_margin": quotation.total_margin,
        "margin_percentage": quotation.margin_percentage,
        "items": items,
        "summary": {
            "total_cost": total_cost,
            "total_price": total_price,
            "items_count": len(items),
            "items_with_low_margin": low,
        },
    }
