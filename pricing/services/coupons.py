import logging

from django.db.models import F, Q

from core.exceptions import CouponUnavailable
from pricing.models import Coupon

logger = logging.getLogger(__name__)


def find_coupon(code: str, day=None) -> Coupon:
    coupon = Coupon.objects.filter(code=(code or "").strip().upper()).first()
    if coupon is None:
        raise CouponUnavailable(f"Coupon {code!r} not found", coupon_code=code)
    if not coupon.is_valid_on(day):
        raise CouponUnavailable(f"Coupon {coupon.code} is not valid today", coupon_code=coupon.code)
    if not coupon.has_remaining_uses:
        raise CouponUnavailable(f"Coupon {coupon.code} has no remaining uses", coupon_code=coupon.code)
    return coupon


def increment_usage(coupon: Coupon) -> None:
    """
    사용 횟수 +1 (원자적).
    UPDATE ... SET usage_count = usage_count + 1 WHERE usage_count < usage_limit
    한도에 걸리면 0 rows -> CouponUnavailable.
    """
    updated = (
        Coupon.objects
        .filter(pk=coupon.pk)
        .filter(Q(usage_limit__isnull=True) | Q(usage_count__lt=F("usage_limit")))
        .update(usage_count=F("usage_count") + 1)
    )
    if not updated:
        logger.warning("Coupon %s usage limit reached", coupon.code)
        raise CouponUnavailable(
            f"Coupon {coupon.code} reached its usage limit",
            coupon_code=coupon.code,
            usage_limit=coupon.usage_limit,
        )
    coupon.refresh_from_db(fields=["usage_count"])
