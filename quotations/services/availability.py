"""
Re-validation of a quotation's line snapshots against current stock and
supplier prices. Used by the validate-availability operation and, as a
hard gate, right before conversion.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

from core.exceptions import NoPriceSource
from core.money import percentage, to_decimal
from core.services.settings import get_decimal_setting
from inventory.services.stock import get_stock
from partners.models import SupplierProduct
from pricing.services.sourcing import resolve_price_source
from quotations.models import Quotation, QuotationDetail

logger = logging.getLogger(__name__)

INSUFFICIENT_STOCK = "insufficient_stock"
NO_INVENTORY = "no_inventory"
OFFER_UNAVAILABLE = "offer_unavailable"
PRICE_CHANGED = "price_changed"


@dataclass
class AvailabilityIssue:
    detail_id: int
    product_id: int
    product_name: str
    kind: str
    requested_quantity: int
    available_stock: int = 0
    snapshot_price: Optional[Decimal] = None
    current_price: Optional[Decimal] = None
    alternative: Optional[dict] = None

    def to_dict(self) -> dict:
        data = {
            "detail_id": self.detail_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "issue": self.kind,
            "requested_quantity": self.requested_quantity,
            "available_stock": self.available_stock,
        }
        if self.snapshot_price is not None:
            data["snapshot_price"] = str(self.snapshot_price)
            data["current_price"] = str(self.current_price)
        if self.alternative is not None:
            data["alternative"] = self.alternative
        return data


@dataclass
class AvailabilityReport:
    quotation_id: int
    issues: List[AvailabilityIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.issues

    def to_dict(self) -> dict:
        return {
            "quotation_id": self.quotation_id,
            "is_valid": self.is_valid,
            "issues": [issue.to_dict() for issue in self.issues],
        }


def _alternative(detail: QuotationDetail, quotation: Quotation) -> Optional[dict]:
    try:
        source = resolve_price_source(detail.product, quotation.warehouse, detail.quantity)
    except NoPriceSource:
        return None
    return {
        "source_type": source.source_type,
        "warehouse_id": getattr(source, "warehouse_id", None),
        "supplier_product_id": getattr(source, "supplier_product_id", None),
        "unit_cost": str(source.unit_cost),
        "available_stock": source.available_stock,
        "in_stock": source.in_stock,
    }


def _check_warehouse_line(detail: QuotationDetail) -> Optional[AvailabilityIssue]:
    stock = get_stock(detail.product_id, detail.warehouse_id)
    if stock is None:
        kind, available = NO_INVENTORY, 0
    elif stock.available_stock < detail.quantity:
        kind, available = INSUFFICIENT_STOCK, stock.available_stock
    else:
        return None
    return AvailabilityIssue(
        detail_id=detail.pk,
        product_id=detail.product_id,
        product_name=detail.product_name,
        kind=kind,
        requested_quantity=detail.quantity,
        available_stock=available,
    )


def _check_supplier_line(detail: QuotationDetail, tolerance: Decimal) -> Optional[AvailabilityIssue]:
    offer = SupplierProduct.objects.filter(pk=detail.supplier_product_id).first()
    base = dict(
        detail_id=detail.pk,
        product_id=detail.product_id,
        product_name=detail.product_name,
        requested_quantity=detail.quantity,
    )
    if offer is None or not offer.is_active:
        return AvailabilityIssue(kind=OFFER_UNAVAILABLE, **base)

    snapshot = to_decimal(detail.purchase_price)
    current = to_decimal(offer.purchase_price)
    if snapshot <= 0:
        drifted = current != snapshot
    else:
        drifted = abs(percentage(current - snapshot, snapshot)) > tolerance
    if drifted:
        return AvailabilityIssue(
            kind=PRICE_CHANGED,
            available_stock=offer.available_stock,
            snapshot_price=snapshot,
            current_price=current,
            **base,
        )

    # 공급사 요청 라인은 애초에 재고가 없던 라인
    if not detail.is_requested_from_supplier and offer.available_stock < detail.quantity:
        return AvailabilityIssue(kind=INSUFFICIENT_STOCK, available_stock=offer.available_stock, **base)
    return None


def validate_availability(quotation: Quotation) -> AvailabilityReport:
    """라인 스냅샷 vs 현재 재고/공급가. 읽기 전용."""
    tolerance = get_decimal_setting("quotations", "price_change_tolerance_percentage")
    report = AvailabilityReport(quotation_id=quotation.pk)

    for detail in quotation.details.select_related("product__category"):
        if detail.source_type == QuotationDetail.SourceType.WAREHOUSE:
            issue = _check_warehouse_line(detail)
        else:
            issue = _check_supplier_line(detail, tolerance)
        if issue is not None:
            issue.alternative = _alternative(detail, quotation)
            report.issues.append(issue)

    if report.issues:
        logger.info("Quotation %s has %d availability issue(s)", quotation.code, len(report.issues))
    return report
