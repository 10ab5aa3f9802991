"""
Where a quotation line comes from, and what it costs.

Stock-first policy: a warehouse that can cover the requested quantity
always wins, even when a supplier offers a cheaper price. Only when the
warehouse cannot cover it do supplier offers compete, by priority and
then by purchase price.

The result is a point-in-time snapshot copied onto the quotation line;
it is not re-checked until availability is validated again before
conversion.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import ClassVar, Optional, Union

from catalog.models import Product
from catalog.services.margins import margins_for_product, suggest_price
from core.exceptions import NoPriceSource, QuotationValidationError
from core.money import q2, to_decimal
from core.services.settings import get_setting
from inventory.models import PriceList, Warehouse
from inventory.services.stock import get_active_price, get_stock
from partners.models import SupplierProduct

logger = logging.getLogger(__name__)

WAREHOUSE = "warehouse"
SUPPLIER = "supplier"


@dataclass(frozen=True)
class WarehouseSource:
    warehouse_id: int
    available_stock: int
    unit_cost: Decimal
    unit_price: Decimal
    in_stock: bool = True
    price_from_list: bool = True

    source_type: ClassVar[str] = WAREHOUSE
    is_requested_from_supplier: ClassVar[bool] = False


@dataclass(frozen=True)
class SupplierSource:
    supplier_id: int
    supplier_product_id: int
    purchase_price: Decimal
    unit_price: Decimal
    available_stock: int
    is_requested_from_supplier: bool = False

    source_type: ClassVar[str] = SUPPLIER

    @property
    def unit_cost(self) -> Decimal:
        return self.purchase_price

    @property
    def in_stock(self) -> bool:
        return not self.is_requested_from_supplier


PriceSource = Union[WarehouseSource, SupplierSource]


def default_price_list() -> Optional[PriceList]:
    code = get_setting("pricing", "default_price_list_code")
    return PriceList.objects.filter(code=code, is_active=True).first()


def _validate_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise QuotationValidationError(f"quantity must be an integer >= 1 (got {quantity!r})", field="quantity")
    return quantity


def _ordered_offers(product: Product):
    return list(
        SupplierProduct.objects
        .filter(product=product, is_active=True)
        .order_by("-priority", "purchase_price", "id")
    )


def _warehouse_source(product, warehouse, stock, quantity, price_list, in_stock=True) -> WarehouseSource:
    unit_cost = to_decimal(stock.average_cost)
    if unit_cost <= 0:
        # 평균원가가 아직 없으면 상품의 기준 원가
        unit_cost = to_decimal(product.distribution_price)

    entry = None
    if price_list is not None:
        entry = get_active_price(product.pk, price_list, warehouse.pk, quantity)

    if entry is not None:
        unit_price = to_decimal(entry.price)
    else:
        unit_price = suggest_price(unit_cost, margins_for_product(product).normal_margin)

    return WarehouseSource(
        warehouse_id=warehouse.pk,
        available_stock=stock.available_stock,
        unit_cost=q2(unit_cost),
        unit_price=q2(unit_price),
        in_stock=in_stock,
        price_from_list=entry is not None,
    )


def _supplier_source(product, offer: SupplierProduct, requested: bool) -> SupplierSource:
    if offer.sale_price is not None and offer.sale_price > 0:
        unit_price = to_decimal(offer.sale_price)
    else:
        unit_price = suggest_price(offer.purchase_price, margins_for_product(product).normal_margin)
    return SupplierSource(
        supplier_id=offer.supplier_id,
        supplier_product_id=offer.pk,
        purchase_price=q2(offer.purchase_price),
        unit_price=q2(unit_price),
        available_stock=offer.available_stock,
        is_requested_from_supplier=requested,
    )


def resolve_price_source(
    product: Product,
    warehouse: Optional[Warehouse],
    quantity: int,
    price_list: Optional[PriceList] = None,
) -> PriceSource:
    """
    1) 창고 재고 >= 수량 -> warehouse (average_cost / 가격표)
    2) 공급사 오퍼: priority desc, purchase_price asc
       - 재고 충분한 첫 오퍼, 없으면 첫 활성 오퍼 (공급사 요청 플래그)
    3) 창고 행만 있고 재고 부족 -> warehouse, in_stock=False
    4) 아무것도 없으면 NoPriceSource
    """
    quantity = _validate_quantity(quantity)
    if price_list is None:
        price_list = default_price_list()

    stock = get_stock(product.pk, warehouse.pk) if warehouse is not None else None
    if stock is not None and stock.available_stock >= quantity:
        return _warehouse_source(product, warehouse, stock, quantity, price_list)

    offers = _ordered_offers(product)
    for offer in offers:
        if offer.is_available and offer.available_stock >= quantity:
            return _supplier_source(product, offer, requested=False)
    if offers:
        logger.info(
            "No supplier covers %s x %s; requesting from supplier_product_id=%s",
            product.sku,
            quantity,
            offers[0].pk,
        )
        return _supplier_source(product, offers[0], requested=True)

    if stock is not None:
        return _warehouse_source(product, warehouse, stock, quantity, price_list, in_stock=False)

    raise NoPriceSource(
        f"Product {product.sku} has neither warehouse stock nor an active supplier offer",
        product_id=product.pk,
        warehouse_id=warehouse.pk if warehouse is not None else None,
    )
