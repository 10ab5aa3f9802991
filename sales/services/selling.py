import logging

from django.db import transaction
from django.utils import timezone

from sales.models import Sale, SaleLine

logger = logging.getLogger(__name__)


@transaction.atomic
def create_sale_from_quotation(quotation) -> Sale:
    """
    견적(Quotation)을 그대로 미러링한 Sale + SaleLine 생성.
    - 금액은 견적 스냅샷을 그대로 사용 (재계산하지 않음)
    - 재고 차감은 여기서 하지 않는다 (출고 프로세스 담당)
    호출자의 트랜잭션 안에서 실행되면 그 트랜잭션에 합류한다.
    """
    lines = list(quotation.details.select_related("product").order_by("id"))
    if not lines:
        raise ValueError(f"Quotation {quotation.code} has no lines.")

    sale = Sale.objects.create(
        customer_id=quotation.customer_id,
        warehouse_id=quotation.warehouse_id,
        seller_id=quotation.seller_id,
        sale_date=timezone.localdate(),
        currency=quotation.currency,
        exchange_rate=quotation.exchange_rate,
        subtotal=quotation.subtotal,
        discount=quotation.discount + quotation.coupon_discount,
        tax=quotation.tax,
        total=quotation.total,
        memo=f"Converted from quotation {quotation.code}",
    )

    SaleLine.objects.bulk_create([
        SaleLine(
            sale=sale,
            product_id=ln.product_id,
            quantity=ln.quantity,
            unit_price=ln.unit_price,
            discount=ln.discount,
            subtotal=ln.subtotal,
            tax_amount=ln.tax_amount,
            total=ln.total,
            unit_cost_snapshot=ln.unit_cost,
            source_type=ln.source_type,
            warehouse_id=ln.warehouse_id,
            supplier_product_id=ln.supplier_product_id,
        )
        for ln in lines
    ])

    logger.info("Created sale %s from quotation %s (%d lines)", sale.pk, quotation.code, len(lines))
    return sale
