from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from core.exceptions import CouponUnavailable
from pricing.models import Coupon
from pricing.services.coupons import find_coupon, increment_usage

D = Decimal


def test_percentage_and_fixed_discount(coupon):
    fixed = Coupon.objects.create(
        code="MENOS50",
        type=Coupon.CouponType.FIXED,
        value=D("50"),
        start_date=coupon.start_date,
        end_date=coupon.end_date,
    )

    assert coupon.calculate_discount(D("1300")) == D("130.00")
    assert fixed.calculate_discount(D("1300")) == D("50")
    assert fixed.calculate_discount(D("30")) == D("30")


def test_below_min_amount_or_outside_dates(coupon):
    coupon.min_amount = D("500")
    assert coupon.calculate_discount(D("499.99")) == D("0.00")

    later = timezone.localdate() + timedelta(days=60)
    assert coupon.calculate_discount(D("1000"), later) == D("0.00")


def test_find_coupon_is_case_insensitive(coupon):
    assert find_coupon(" promo10 ") == coupon


def test_find_coupon_rejects_inactive(coupon):
    coupon.is_active = False
    coupon.save()

    with pytest.raises(CouponUnavailable):
        find_coupon("PROMO10")


@pytest.mark.parametrize("n", [2, 5])
def test_usage_never_exceeds_limit(coupon, n):
    coupon.usage_limit = n - 1
    coupon.save()

    successes = failures = 0
    for _ in range(n):
        try:
            increment_usage(Coupon.objects.get(pk=coupon.pk))
            successes += 1
        except CouponUnavailable:
            failures += 1

    coupon.refresh_from_db()
    assert successes == n - 1
    assert failures >= 1
    assert coupon.usage_count == coupon.usage_limit


def test_unlimited_coupon(coupon):
    for _ in range(3):
        increment_usage(coupon)

    assert coupon.usage_count == 3
