# sales/models.py

from decimal import Decimal
from django.conf import settings
from django.db import models
from django.utils import timezone


class Sale(models.Model):
    class PaymentStatus(models.TextChoices):
        PENDING = "pending", "Pending"
        PARTIAL = "partial", "Partial"
        PAID = "paid", "Paid"

    customer = models.ForeignKey("partners.Partner", on_delete=models.PROTECT, related_name="sales")
    warehouse = models.ForeignKey("inventory.Warehouse", on_delete=models.PROTECT, related_name="sales")
    seller = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="sales")

    sale_date = models.DateField(default=timezone.localdate)
    currency = models.CharField(max_length=3, default="PEN")
    exchange_rate = models.DecimalField(max_digits=10, decimal_places=4, default=1)

    subtotal = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    discount = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    tax = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    total = models.DecimalField(max_digits=14, decimal_places=2, default=0)

    payment_status = models.CharField(max_length=10, choices=PaymentStatus.choices, default=PaymentStatus.PENDING)

    memo = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-sale_date", "-id"]

    def __str__(self) -> str:
        return f"Sale #{self.pk} ({self.customer})"

    @property
    def lines_total(self) -> Decimal:
        total = Decimal("0")
        for ln in self.lines.all():
            total += ln.total
        return total


class SaleLine(models.Model):
    sale = models.ForeignKey(Sale, on_delete=models.CASCADE, related_name="lines")
    product = models.ForeignKey("catalog.Product", on_delete=models.PROTECT)

    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    discount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    subtotal = models.DecimalField(max_digits=14, decimal_places=2)
    tax_amount = models.DecimalField(max_digits=14, decimal_places=2)
    total = models.DecimalField(max_digits=14, decimal_places=2)

    # 판매 시점 원가 스냅샷
    unit_cost_snapshot = models.DecimalField(max_digits=12, decimal_places=2)

    source_type = models.CharField(max_length=10)
    warehouse = models.ForeignKey("inventory.Warehouse", on_delete=models.PROTECT, null=True, blank=True)
    supplier_product = models.ForeignKey("partners.SupplierProduct", on_delete=models.PROTECT, null=True, blank=True)

    created_at = models.DateTimeField(default=timezone.now)

    def __str__(self) -> str:
        return f"Sale #{self.sale_id} - {self.product.sku} x {self.quantity}"
