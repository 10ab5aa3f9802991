from decimal import Decimal, ROUND_HALF_UP

from django.db import models
from django.utils import timezone


class Coupon(models.Model):
    class CouponType(models.TextChoices):
        PERCENTAGE = "percentage", "Percentage"
        FIXED = "fixed", "Fixed amount"

    code = models.CharField(max_length=40, unique=True)
    type = models.CharField(max_length=12, choices=CouponType.choices, default=CouponType.PERCENTAGE)
    value = models.DecimalField(max_digits=12, decimal_places=2)
    min_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)

    start_date = models.DateField()
    end_date = models.DateField()
    is_active = models.BooleanField(default=True)

    # null = 무제한
    usage_limit = models.PositiveIntegerField(null=True, blank=True)
    usage_count = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["code"]

    def __str__(self) -> str:
        return self.code

    def save(self, *args, **kwargs):
        self.code = (self.code or "").strip().upper()
        super().save(*args, **kwargs)

    def is_valid_on(self, day=None) -> bool:
        day = day or timezone.localdate()
        return self.is_active and self.start_date <= day <= self.end_date

    @property
    def has_remaining_uses(self) -> bool:
        return self.usage_limit is None or self.usage_count < self.usage_limit

    def calculate_discount(self, amount, day=None) -> Decimal:
        """
        쿠폰 할인액 (유효하지 않거나 최소금액 미달이면 0).
        - percentage: amount * value / 100
        - fixed: min(value, amount)
        """
        amount = Decimal(str(amount))
        if not self.is_valid_on(day) or amount < self.min_amount:
            return Decimal("0.00")
        if self.type == self.CouponType.PERCENTAGE:
            return (amount * self.value / Decimal("100")).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        return min(self.value, amount)
