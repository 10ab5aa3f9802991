from django.db import models
from django.utils import timezone


class Warehouse(models.Model):
    code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=120)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["code"]

    def __str__(self) -> str:
        return f"{self.code} - {self.name}"


class Inventory(models.Model):
    """
    창고별 품목 재고 상태.
    - available_stock: 판매 가능한 수량
    - average_cost: 현재 평균원가 (견적 원가 기준)
    견적 엔진은 이 행을 읽기만 한다.
    """

    product = models.ForeignKey("catalog.Product", on_delete=models.CASCADE, related_name="inventory")
    warehouse = models.ForeignKey("inventory.Warehouse", on_delete=models.CASCADE, related_name="inventory")

    available_stock = models.IntegerField(default=0)
    reserved_stock = models.IntegerField(default=0)
    average_cost = models.DecimalField(max_digits=14, decimal_places=4, default=0)

    is_active = models.BooleanField(default=True)
    last_movement_at = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name_plural = "inventory"
        constraints = [
            models.UniqueConstraint(fields=["product", "warehouse"], name="uniq_inventory_product_warehouse"),
        ]

    def __str__(self) -> str:
        return f"Inventory({self.product.sku} @ {self.warehouse.code}) stock={self.available_stock} avg={self.average_cost}"


class PriceList(models.Model):
    code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=120)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["code"]

    def __str__(self) -> str:
        return self.code


class ProductPrice(models.Model):
    """
    가격표 항목. warehouse가 비어 있으면 모든 창고에 적용되는 일반 가격.
    """

    product = models.ForeignKey("catalog.Product", on_delete=models.CASCADE, related_name="prices")
    price_list = models.ForeignKey("inventory.PriceList", on_delete=models.CASCADE, related_name="product_prices")
    warehouse = models.ForeignKey(
        "inventory.Warehouse",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="product_prices",
    )

    price = models.DecimalField(max_digits=12, decimal_places=2)
    min_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    currency = models.CharField(max_length=3, default="PEN")
    min_quantity = models.PositiveIntegerField(default=1)

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["product_id", "price_list_id", "min_quantity"]

    def __str__(self) -> str:
        scope = self.warehouse.code if self.warehouse_id else "general"
        return f"{self.price_list.code}/{self.product.sku} ({scope}) = {self.price}"
