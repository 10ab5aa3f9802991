from datetime import timedelta
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone

from catalog.models import Category, Product
from inventory.models import Inventory, PriceList, ProductPrice, Warehouse
from partners.models import Partner, SupplierProduct
from pricing.models import Coupon


@pytest.fixture
def seller(db):
    return get_user_model().objects.create_user(username="vendedor", password="x")


@pytest.fixture
def customer(db):
    return Partner.objects.create(
        partner_type=Partner.PartnerType.CUSTOMER,
        name="Comercial Andina SAC",
        document_number="20123456789",
        email="compras@andina.pe",
        phone="+51 1 555 0101",
    )


@pytest.fixture
def supplier(db):
    return Partner.objects.create(partner_type=Partner.PartnerType.SUPPLIER, name="Deltron")


@pytest.fixture
def other_supplier(db):
    return Partner.objects.create(partner_type=Partner.PartnerType.SUPPLIER, name="Ingram Micro")


@pytest.fixture
def warehouse(db):
    return Warehouse.objects.create(code="LIM", name="Lima Central")


@pytest.fixture
def category(db):
    return Category.objects.create(
        name="Computo",
        level=1,
        min_margin_percentage=Decimal("10.00"),
        normal_margin_percentage=Decimal("20.00"),
    )


@pytest.fixture
def product(category):
    return Product.objects.create(
        sku="NB-001",
        name="Notebook 14",
        brand="Lenovo",
        category=category,
        distribution_price=Decimal("480.00"),
    )


@pytest.fixture
def inventory(product, warehouse):
    return Inventory.objects.create(
        product=product,
        warehouse=warehouse,
        available_stock=10,
        average_cost=Decimal("500.00"),
    )


@pytest.fixture
def price_list(db):
    return PriceList.objects.create(code="GENERAL", name="Lista general")


@pytest.fixture
def product_price(product, price_list):
    return ProductPrice.objects.create(product=product, price_list=price_list, price=Decimal("650.00"))


@pytest.fixture
def offer(supplier, product):
    return SupplierProduct.objects.create(
        supplier=supplier,
        product=product,
        purchase_price=Decimal("450.00"),
        sale_price=Decimal("600.00"),
        available_stock=50,
        priority=1,
    )


@pytest.fixture
def coupon(db):
    today = timezone.localdate()
    return Coupon.objects.create(
        code="promo10",
        type=Coupon.CouponType.PERCENTAGE,
        value=Decimal("10.00"),
        start_date=today - timedelta(days=1),
        end_date=today + timedelta(days=30),
    )


@pytest.fixture
def make_quotation(seller, customer, warehouse):
    """견적 생성 헬퍼: make_quotation(items=[{"product": p, "quantity": 2}], ...)"""
    from quotations.services.quoting import create_quotation

    def _make(items=(), **kwargs):
        kwargs.setdefault("seller", seller)
        kwargs.setdefault("customer", customer)
        kwargs.setdefault("warehouse", warehouse)
        return create_quotation(items=list(items), **kwargs)

    return _make


@pytest.fixture
def stocked_quotation(make_quotation, product, inventory, product_price):
    """창고 재고 라인 1개 (2 x 650.00, 원가 500.00)"""
    return make_quotation(items=[{"product": product, "quantity": 2}])
