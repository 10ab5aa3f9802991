from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

from core.exceptions import InvalidStatus


class Quotation(models.Model):
    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        SENT = "sent", "Sent"
        ACCEPTED = "accepted", "Accepted"
        REJECTED = "rejected", "Rejected"
        EXPIRED = "expired", "Expired"
        CONVERTED = "converted", "Converted"

    # COT-{year}-{6자리 순번}
    code = models.CharField(max_length=20, unique=True)

    seller = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="quotations")
    customer = models.ForeignKey("partners.Partner", on_delete=models.PROTECT, related_name="quotations")
    warehouse = models.ForeignKey("inventory.Warehouse", on_delete=models.PROTECT, related_name="quotations")
    coupon = models.ForeignKey("pricing.Coupon", on_delete=models.PROTECT, null=True, blank=True, related_name="quotations")

    # 고객 스냅샷: 이후 고객 정보가 바뀌어도 과거 견적은 그대로
    customer_name = models.CharField(max_length=160)
    customer_document = models.CharField(max_length=20, blank=True)
    customer_email = models.EmailField(blank=True)
    customer_phone = models.CharField(max_length=40, blank=True)

    status = models.CharField(max_length=10, choices=Status.choices, default=Status.DRAFT)

    currency = models.CharField(max_length=3, default="PEN")
    exchange_rate = models.DecimalField(max_digits=10, decimal_places=4, default=1)

    subtotal = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    discount = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    coupon_discount = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    tax = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    shipping_cost = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    packaging_cost = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    assembly_cost = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    total = models.DecimalField(max_digits=14, decimal_places=2, default=0)

    total_cost = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    total_margin = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    margin_percentage = models.DecimalField(max_digits=8, decimal_places=2, default=0)

    commission_percentage = models.DecimalField(max_digits=6, decimal_places=2, default=0)
    commission_amount = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    commission_paid = models.BooleanField(default=False)

    quotation_date = models.DateField(default=timezone.localdate)
    valid_until = models.DateField()

    sent_at = models.DateTimeField(null=True, blank=True)
    sent_to_email = models.EmailField(blank=True)

    converted_sale = models.OneToOneField(
        "sales.Sale",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="quotation",
    )
    converted_at = models.DateTimeField(null=True, blank=True)

    observations = models.TextField(blank=True)
    internal_notes = models.TextField(blank=True)

    is_deleted = models.BooleanField(default=False)
    deleted_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-quotation_date", "-id"]

    def __str__(self) -> str:
        return f"{self.code} - {self.customer_name}"

    @property
    def is_expired(self) -> bool:
        """읽기 전용 판정. 상태 전이는 스케줄 작업(expire_quotations)만 한다."""
        return self.valid_until < timezone.localdate() and self.status != self.Status.CONVERTED

    @property
    def is_editable(self) -> bool:
        return self.status == self.Status.DRAFT and not self.is_deleted

    @property
    def can_be_converted(self) -> bool:
        return self.status == self.Status.ACCEPTED and self.converted_sale_id is None


class QuotationDetail(models.Model):
    class SourceType(models.TextChoices):
        WAREHOUSE = "warehouse", "Warehouse"
        SUPPLIER = "supplier", "Supplier"

    quotation = models.ForeignKey(Quotation, on_delete=models.CASCADE, related_name="details")

    product = models.ForeignKey("catalog.Product", on_delete=models.PROTECT)
    product_name = models.CharField(max_length=200)
    product_sku = models.CharField(max_length=50, blank=True)
    product_brand = models.CharField(max_length=80, blank=True)

    quantity = models.PositiveIntegerField()

    purchase_price = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    distribution_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    discount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    discount_percentage = models.DecimalField(max_digits=8, decimal_places=2, default=0)

    subtotal = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    tax_amount = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    total = models.DecimalField(max_digits=14, decimal_places=2, default=0)

    unit_cost = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    total_cost = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    unit_margin = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    total_margin = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    margin_percentage = models.DecimalField(max_digits=8, decimal_places=2, default=0)

    source_type = models.CharField(max_length=10, choices=SourceType.choices)
    warehouse = models.ForeignKey("inventory.Warehouse", on_delete=models.PROTECT, null=True, blank=True)
    supplier = models.ForeignKey(
        "partners.Partner",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="quoted_details",
    )
    supplier_product = models.ForeignKey("partners.SupplierProduct", on_delete=models.PROTECT, null=True, blank=True)

    is_requested_from_supplier = models.BooleanField(default=False)
    in_stock = models.BooleanField(default=True)
    available_stock = models.IntegerField(default=0)

    notes = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(
                        source_type="warehouse",
                        warehouse__isnull=False,
                        supplier__isnull=True,
                        supplier_product__isnull=True,
                    )
                    | Q(
                        source_type="supplier",
                        warehouse__isnull=True,
                        supplier__isnull=False,
                        supplier_product__isnull=False,
                    )
                ),
                name="quotation_detail_single_source",
            ),
            models.CheckConstraint(condition=Q(quantity__gte=1), name="quotation_detail_quantity_positive"),
        ]

    def __str__(self) -> str:
        return f"{self.quotation.code} - {self.product_sku or self.product_id} x {self.quantity}"

    def apply_source(self, source) -> None:
        """PriceSource(WarehouseSource | SupplierSource) 스냅샷을 이 라인에 복사."""
        self.source_type = source.source_type
        self.purchase_price = source.unit_cost
        self.available_stock = source.available_stock
        self.in_stock = source.in_stock
        self.is_requested_from_supplier = source.is_requested_from_supplier
        if source.source_type == self.SourceType.WAREHOUSE:
            self.warehouse_id = source.warehouse_id
            self.supplier_id = None
            self.supplier_product_id = None
        else:
            self.warehouse_id = None
            self.supplier_id = source.supplier_id
            self.supplier_product_id = source.supplier_product_id

    def apply_totals(self, totals) -> None:
        self.quantity = totals.quantity
        self.unit_price = totals.unit_price
        self.unit_cost = totals.unit_cost
        self.discount = totals.discount
        self.discount_percentage = totals.discount_percentage
        self.subtotal = totals.subtotal
        self.tax_amount = totals.tax_amount
        self.total = totals.total
        self.total_cost = totals.total_cost
        self.unit_margin = totals.unit_margin
        self.total_margin = totals.total_margin
        self.margin_percentage = totals.margin_percentage


class QuotationStatusHistory(models.Model):
    """
    상태 변경 이력 (append-only).
    - 생성만 가능, 수정/삭제 금지
    """

    quotation = models.ForeignKey(Quotation, on_delete=models.CASCADE, related_name="status_history")
    status = models.CharField(max_length=10, choices=Quotation.Status.choices)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True)
    notes = models.TextField(blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["created_at", "id"]
        verbose_name_plural = "quotation status history"

    def __str__(self) -> str:
        return f"{self.quotation.code} -> {self.status} @ {self.created_at:%Y-%m-%d %H:%M}"

    def save(self, *args, **kwargs):
        if self.pk is not None:
            raise InvalidStatus("Status history rows are append-only.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise InvalidStatus("Status history rows are append-only.")
