import logging
from datetime import date
from typing import Optional

from django.db import transaction
from django.utils import timezone

from core.exceptions import InvalidStatus, QuotationValidationError
from quotations.models import Quotation, QuotationStatusHistory
from quotations.services.locking import lock_quotation

logger = logging.getLogger(__name__)

S = Quotation.Status

# converted 는 convert_quotation 으로만 (Sale 생성과 같은 트랜잭션)
TRANSITIONS = {
    "draft": {"sent", "expired"},
    "sent": {"accepted", "rejected", "expired"},
    "accepted": {"converted", "expired"},
    "rejected": set(),
    "expired": set(),
    "converted": set(),
}


def can_transition(current: str, target: str) -> bool:
    return str(target) in TRANSITIONS.get(str(current), set())


def record_history(quotation: Quotation, status: str, user=None, notes: str = "", **metadata) -> QuotationStatusHistory:
    return QuotationStatusHistory.objects.create(
        quotation=quotation,
        status=status,
        user=user,
        notes=notes,
        metadata=metadata,
    )


def _apply_transition(
    quotation: Quotation,
    target: str,
    user=None,
    notes: str = "",
    extra_fields=(),
    **metadata,
) -> Quotation:
    """
    상태 변경 + 이력 1건. 호출자가 transaction.atomic + row lock 을 잡은 상태여야 한다.
    """
    current = quotation.status
    if not can_transition(current, target):
        raise InvalidStatus(
            f"Cannot change quotation {quotation.code} from {current} to {target}",
            quotation_id=quotation.pk,
            status=current,
            target=target,
        )
    quotation.status = target
    quotation.save(update_fields=["status", "updated_at", *extra_fields])
    record_history(quotation, target, user=user, notes=notes, previous_status=current, **metadata)
    logger.info("Quotation %s: %s -> %s", quotation.code, current, target)
    return quotation


@transaction.atomic
def send_quotation(quotation_id: int, user=None, *, email: Optional[str] = None, notes: str = "") -> Quotation:
    quotation = lock_quotation(quotation_id)
    if quotation.status == S.DRAFT and not quotation.details.exists():
        raise QuotationValidationError(
            f"Quotation {quotation.code} has no lines; add at least one before sending.",
            quotation_id=quotation.pk,
        )
    quotation.sent_at = timezone.now()
    quotation.sent_to_email = email or quotation.customer_email
    return _apply_transition(
        quotation,
        S.SENT,
        user,
        notes,
        extra_fields=("sent_at", "sent_to_email"),
        sent_to_email=quotation.sent_to_email,
    )


@transaction.atomic
def accept_quotation(quotation_id: int, user=None, notes: str = "") -> Quotation:
    return _apply_transition(lock_quotation(quotation_id), S.ACCEPTED, user, notes)


@transaction.atomic
def reject_quotation(quotation_id: int, user=None, notes: str = "") -> Quotation:
    return _apply_transition(lock_quotation(quotation_id), S.REJECTED, user, notes)


@transaction.atomic
def expire_quotation(quotation_id: int, user=None, notes: str = "", today: Optional[date] = None) -> Quotation:
    quotation = lock_quotation(quotation_id)
    today = today or timezone.localdate()
    if quotation.valid_until >= today:
        raise InvalidStatus(
            f"Quotation {quotation.code} is valid until {quotation.valid_until}; it cannot expire yet.",
            quotation_id=quotation.pk,
            status=quotation.status,
        )
    return _apply_transition(quotation, S.EXPIRED, user, notes or "Validity period elapsed")


def expire_overdue_quotations(today: Optional[date] = None, user=None) -> int:
    """
    스케줄 작업: valid_until 이 지난 draft/sent/accepted 견적을 expired 로.
    건별 트랜잭션이라 한 건이 실패해도 나머지는 진행된다.
    """
    today = today or timezone.localdate()
    candidates = list(
        Quotation.objects
        .filter(
            is_deleted=False,
            valid_until__lt=today,
            status__in=[S.DRAFT, S.SENT, S.ACCEPTED],
        )
        .values_list("pk", flat=True)
    )
    expired = 0
    for pk in candidates:
        try:
            expire_quotation(pk, user=user, today=today)
        except InvalidStatus as exc:
            # 그 사이 다른 요청이 상태를 바꾼 경우
            logger.info("Skipping quotation %s: %s", pk, exc)
            continue
        expired += 1
    logger.info("Expired %d of %d overdue quotation(s)", expired, len(candidates))
    return expired


def change_status(quotation_id: int, status: str, user=None, notes: str = ""):
    """
    ChangeStatus(status, notes). converted 는 Sale 을 만들어 반환한다.
    """
    if status == S.SENT:
        return send_quotation(quotation_id, user, notes=notes)
    if status == S.ACCEPTED:
        return accept_quotation(quotation_id, user, notes)
    if status == S.REJECTED:
        return reject_quotation(quotation_id, user, notes)
    if status == S.EXPIRED:
        return expire_quotation(quotation_id, user, notes)
    if status == S.CONVERTED:
        from quotations.services.conversion import convert_quotation  # 순환 import 방지
        return convert_quotation(quotation_id, user, notes=notes)
    raise InvalidStatus(f"Unsupported target status {status!r}", target=status)


@transaction.atomic
def archive_quotation(quotation_id: int) -> Quotation:
    """소프트 삭제. draft 만 가능하고 라인은 그대로 남는다."""
    quotation = lock_quotation(quotation_id)
    if quotation.status != S.DRAFT:
        raise InvalidStatus(
            f"Only draft quotations can be archived; {quotation.code} is {quotation.status}.",
            quotation_id=quotation.pk,
            status=quotation.status,
        )
    quotation.is_deleted = True
    quotation.deleted_at = timezone.now()
    quotation.save(update_fields=["is_deleted", "deleted_at", "updated_at"])
    logger.info("Archived quotation %s", quotation.code)
    return quotation


@transaction.atomic
def restore_quotation(quotation_id: int) -> Quotation:
    quotation = lock_quotation(quotation_id, include_deleted=True)
    if not quotation.is_deleted:
        return quotation
    quotation.is_deleted = False
    quotation.deleted_at = None
    quotation.save(update_fields=["is_deleted", "deleted_at", "updated_at"])
    logger.info("Restored quotation %s", quotation.code)
    return quotation


@transaction.atomic
def pay_commission(quotation_id: int) -> Quotation:
    quotation = lock_quotation(quotation_id)
    if quotation.status != S.CONVERTED:
        raise InvalidStatus(
            f"Commission can only be paid on converted quotations; {quotation.code} is {quotation.status}.",
            quotation_id=quotation.pk,
            status=quotation.status,
        )
    if quotation.commission_paid:
        return quotation
    quotation.commission_paid = True
    quotation.save(update_fields=["commission_paid", "updated_at"])
    logger.info("Commission %s paid for quotation %s", quotation.commission_amount, quotation.code)
    return quotation
