from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional

from django.db.models import Case, IntegerField, Q, Value, When

from inventory.models import Inventory, PriceList, ProductPrice


@dataclass(frozen=True)
class StockSnapshot:
    available_stock: int
    average_cost: Decimal


def get_stock(product_id: int, warehouse_id: int) -> Optional[StockSnapshot]:
    """Active inventory row for (product, warehouse), or None."""
    row = (
        Inventory.objects
        .filter(product_id=product_id, warehouse_id=warehouse_id, is_active=True)
        .only("available_stock", "average_cost")
        .first()
    )
    if row is None:
        return None
    return StockSnapshot(available_stock=row.available_stock, average_cost=row.average_cost)


def get_active_price(
    product_id: int,
    price_list: PriceList,
    warehouse_id: Optional[int] = None,
    quantity: int = 1,
) -> Optional[ProductPrice]:
    """
    Best active price-list entry:
    - warehouse-specific entry before the general (warehouse=NULL) one
    - among eligible entries (min_quantity <= quantity), lowest min_quantity first
    """
    scope = Q(warehouse__isnull=True)
    if warehouse_id is not None:
        scope |= Q(warehouse_id=warehouse_id)

    return (
        ProductPrice.objects
        .filter(scope, product_id=product_id, price_list=price_list, is_active=True, min_quantity__lte=quantity)
        .annotate(
            scope_rank=Case(
                When(warehouse__isnull=True, then=Value(1)),
                default=Value(0),
                output_field=IntegerField(),
            )
        )
        .order_by("scope_rank", "min_quantity", "id")
        .first()
    )


def check_stock(items: Iterable[dict]) -> list[dict]:
    """
    items: [{"product_id", "warehouse_id", "quantity"}, ...]
    창고 재고가 요청 수량을 충족하는지 행 단위로 돌려준다.
    """
    results = []
    for item in items:
        snapshot = get_stock(item["product_id"], item["warehouse_id"])
        available = snapshot.available_stock if snapshot else 0
        results.append({
            "product_id": item["product_id"],
            "warehouse_id": item["warehouse_id"],
            "requested_quantity": item["quantity"],
            "available_stock": available,
            "sufficient": available >= item["quantity"],
        })
    return results
