import csv
from decimal import Decimal

from django.http import HttpResponse

from quotations.models import Quotation


def _d(v):
    # Decimal/None 안전 처리
    if v is None:
        return ""
    if isinstance(v, Decimal):
        return str(v)
    return v


def export_quotation_csv(quotation_id: int) -> HttpResponse:
    quotation = Quotation.objects.get(id=quotation_id, is_deleted=False)

    lines = (
        quotation.details
        .select_related("warehouse", "supplier")
        .order_by("id")
    )

    response = HttpResponse(content_type="text/csv; charset=utf-8")
    response["Content-Disposition"] = f'attachment; filename="{quotation.code}.csv"'

    # 엑셀 한글/스페인어 깨짐 방지용 BOM
    response.write("\ufeff")

    writer = csv.writer(response)

    writer.writerow([
        "QuotationCode",
        "Customer",
        "CustomerDocument",
        "Status",
        "Currency",
        "ProductSKU",
        "ProductName",
        "Brand",
        "Quantity",
        "UnitPrice",
        "Discount",
        "Subtotal",
        "Tax",
        "Total",
        "UnitCost",
        "MarginPct",
        "Source",
        "SourceName",
        "InStock",
    ])

    for ln in lines:
        if ln.source_type == ln.SourceType.WAREHOUSE:
            source_name = ln.warehouse.name if ln.warehouse_id else ""
        else:
            source_name = ln.supplier.name if ln.supplier_id else ""
        writer.writerow([
            quotation.code,
            quotation.customer_name,
            quotation.customer_document,
            quotation.status,
            quotation.currency,
            ln.product_sku,
            ln.product_name,
            ln.product_brand,
            ln.quantity,
            _d(ln.unit_price),
            _d(ln.discount),
            _d(ln.subtotal),
            _d(ln.tax_amount),
            _d(ln.total),
            _d(ln.unit_cost),
            _d(ln.margin_percentage),
            ln.source_type,
            source_name,
            "Y" if ln.in_stock else "N",
        ])

    # 문서 합계
    writer.writerow([])
    for label, value in (
        ("Subtotal", quotation.subtotal),
        ("Discount", quotation.discount),
        ("CouponDiscount", quotation.coupon_discount),
        ("Tax", quotation.tax),
        ("Shipping", quotation.shipping_cost),
        ("Packaging", quotation.packaging_cost),
        ("Assembly", quotation.assembly_cost),
        ("Total", quotation.total),
    ):
        writer.writerow([label, _d(value)])

    return response
