from django.db import models


class Partner(models.Model):
    class PartnerType(models.TextChoices):
        SUPPLIER = "SUPPLIER", "Supplier"
        CUSTOMER = "CUSTOMER", "Customer"

    partner_type = models.CharField(max_length=20, choices=PartnerType.choices)
    name = models.CharField(max_length=160)

    # RUC / DNI
    document_number = models.CharField(max_length=20, blank=True)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=40, blank=True)
    address = models.CharField(max_length=200, blank=True)
    memo = models.TextField(blank=True)

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class SupplierProduct(models.Model):
    """
    공급사 오퍼(공급사 카탈로그의 한 품목).
    - is_available은 available_stock > 0 에서 자동으로 맞춰진다.
    """

    supplier = models.ForeignKey(
        "partners.Partner",
        on_delete=models.PROTECT,
        related_name="supplier_products",
        limit_choices_to={"partner_type": Partner.PartnerType.SUPPLIER},
    )
    product = models.ForeignKey("catalog.Product", on_delete=models.CASCADE, related_name="supplier_products")

    supplier_sku = models.CharField(max_length=80, blank=True)
    purchase_price = models.DecimalField(max_digits=12, decimal_places=2)
    sale_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    currency = models.CharField(max_length=3, default="PEN")

    available_stock = models.IntegerField(default=0)
    is_available = models.BooleanField(default=False)

    delivery_days = models.PositiveSmallIntegerField(default=1)
    priority = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)

    price_updated_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-priority", "purchase_price"]

    def __str__(self) -> str:
        return f"{self.supplier} / {self.product.sku} @ {self.purchase_price}"

    def save(self, *args, **kwargs):
        self.is_available = (self.available_stock or 0) > 0
        super().save(*args, **kwargs)
