import logging

from django.db import transaction
from django.utils import timezone

from core.exceptions import AlreadyConverted, InvalidStatus, StaleAvailability
from pricing.services.coupons import increment_usage
from quotations.models import Quotation
from quotations.services.availability import validate_availability
from quotations.services.lifecycle import _apply_transition
from quotations.services.locking import lock_quotation
from sales.services.selling import create_sale_from_quotation

logger = logging.getLogger(__name__)


@transaction.atomic
def convert_quotation(quotation_id: int, user=None, *, sale_factory=create_sale_from_quotation, notes: str = ""):
    """
    accepted 견적 -> Sale.
    - 같은 트랜잭션: Sale 생성 + 쿠폰 사용횟수 + 견적 연결 + 이력
    - 두 번째 호출은 AlreadyConverted (Sale 중복 생성 없음)
    - 재고/공급가가 바뀌었으면 StaleAvailability
    """
    quotation = lock_quotation(quotation_id)

    if quotation.converted_sale_id is not None or quotation.status == Quotation.Status.CONVERTED:
        raise AlreadyConverted(
            f"Quotation {quotation.code} was already converted",
            quotation_id=quotation.pk,
            sale_id=quotation.converted_sale_id,
        )
    if not quotation.can_be_converted:
        raise InvalidStatus(
            f"Only accepted quotations can be converted; {quotation.code} is {quotation.status}.",
            quotation_id=quotation.pk,
            status=quotation.status,
        )

    report = validate_availability(quotation)
    if not report.is_valid:
        raise StaleAvailability(
            f"Quotation {quotation.code} no longer matches current stock or prices; re-validate before converting.",
            issues=[issue.to_dict() for issue in report.issues],
        )

    if quotation.coupon_id is not None:
        increment_usage(quotation.coupon)

    sale = sale_factory(quotation)

    quotation.converted_sale = sale
    quotation.converted_at = timezone.now()
    _apply_transition(
        quotation,
        Quotation.Status.CONVERTED,
        user,
        notes or f"Converted to sale {sale.pk}",
        extra_fields=("converted_sale", "converted_at"),
        sale_id=sale.pk,
    )
    logger.info("Quotation %s converted to sale %s", quotation.code, sale.pk)
    return sale
