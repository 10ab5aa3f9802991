from decimal import Decimal

import pytest

from catalog.models import Product
from core.exceptions import NoPriceSource, QuotationValidationError
from inventory.models import Inventory, ProductPrice, Warehouse
from inventory.services.stock import check_stock
from partners.models import SupplierProduct
from pricing.services.sourcing import SUPPLIER, WAREHOUSE, resolve_price_source


def test_stock_first_even_when_supplier_is_cheaper(product, warehouse, inventory, product_price, offer):
    source = resolve_price_source(product, warehouse, 5)

    assert source.source_type == WAREHOUSE
    assert source.unit_cost == Decimal("500.00")
    assert source.unit_price == Decimal("650.00")
    assert source.in_stock is True


def test_supplier_with_enough_stock_when_warehouse_is_short(product, warehouse, inventory, supplier, other_supplier):
    SupplierProduct.objects.create(
        supplier=supplier, product=product, purchase_price=Decimal("430"), available_stock=5, priority=5
    )
    covering = SupplierProduct.objects.create(
        supplier=other_supplier, product=product, purchase_price=Decimal("470"), available_stock=40, priority=1
    )

    source = resolve_price_source(product, warehouse, 20)

    assert source.source_type == SUPPLIER
    assert source.supplier_product_id == covering.pk
    assert source.is_requested_from_supplier is False


def test_priority_then_purchase_price(product, warehouse, supplier, other_supplier):
    SupplierProduct.objects.create(
        supplier=supplier, product=product, purchase_price=Decimal("470"), available_stock=40, priority=1
    )
    cheaper = SupplierProduct.objects.create(
        supplier=other_supplier, product=product, purchase_price=Decimal("455"), available_stock=40, priority=1
    )

    assert resolve_price_source(product, warehouse, 3).supplier_product_id == cheaper.pk


def test_first_offer_is_requested_when_nobody_covers(product, warehouse, supplier, other_supplier):
    top = SupplierProduct.objects.create(
        supplier=supplier, product=product, purchase_price=Decimal("480"), available_stock=0, priority=9
    )
    SupplierProduct.objects.create(
        supplier=other_supplier, product=product, purchase_price=Decimal("440"), available_stock=2, priority=1
    )

    source = resolve_price_source(product, warehouse, 10)

    assert source.supplier_product_id == top.pk
    assert source.is_requested_from_supplier is True
    assert source.in_stock is False


def test_offer_price_suggested_from_normal_margin(product, warehouse, supplier):
    SupplierProduct.objects.create(supplier=supplier, product=product, purchase_price=Decimal("400"), available_stock=9)

    source = resolve_price_source(product, warehouse, 1)

    assert source.unit_price == Decimal("480.00")


def test_short_warehouse_without_offers(product, warehouse, inventory):
    source = resolve_price_source(product, warehouse, 50)

    assert source.source_type == WAREHOUSE
    assert source.in_stock is False
    assert source.available_stock == 10


def test_no_source_at_all(product, warehouse):
    with pytest.raises(NoPriceSource):
        resolve_price_source(product, warehouse, 1)


@pytest.mark.parametrize("quantity", [0, -1, 1.5, True])
def test_quantity_must_be_positive_integer(product, warehouse, inventory, quantity):
    with pytest.raises(QuotationValidationError):
        resolve_price_source(product, warehouse, quantity)


def test_warehouse_specific_price_preferred(product, warehouse, inventory, price_list, product_price):
    ProductPrice.objects.create(product=product, price_list=price_list, warehouse=warehouse, price=Decimal("640"))

    assert resolve_price_source(product, warehouse, 1).unit_price == Decimal("640.00")


def test_price_entry_above_quantity_is_not_eligible(product, warehouse, inventory, price_list, product_price):
    ProductPrice.objects.create(product=product, price_list=price_list, price=Decimal("600"), min_quantity=5)

    assert resolve_price_source(product, warehouse, 2).unit_price == Decimal("650.00")


def test_missing_price_entry_uses_normal_margin(product, warehouse, inventory):
    source = resolve_price_source(product, warehouse, 1)

    assert source.unit_price == Decimal("600.00")
    assert source.price_from_list is False


def test_zero_average_cost_falls_back_to_distribution_price(product, warehouse):
    Inventory.objects.create(product=product, warehouse=warehouse, available_stock=3, average_cost=0)

    assert resolve_price_source(product, warehouse, 1).unit_cost == Decimal("480.00")


def test_check_stock(product, warehouse, inventory):
    other = Warehouse.objects.create(code="AQP", name="Arequipa")
    mouse = Product.objects.create(sku="MS-01", name="Mouse")

    rows = check_stock([
        {"product_id": product.pk, "warehouse_id": warehouse.pk, "quantity": 4},
        {"product_id": product.pk, "warehouse_id": other.pk, "quantity": 1},
        {"product_id": mouse.pk, "warehouse_id": warehouse.pk, "quantity": 1},
    ])

    assert [r["sufficient"] for r in rows] == [True, False, False]
    assert rows[0]["available_stock"] == 10
