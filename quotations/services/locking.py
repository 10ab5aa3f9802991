from django.db import DatabaseError

from core.exceptions import ConcurrencyConflict, InvalidStatus
from quotations.models import Quotation


def lock_quotation(quotation_id: int, *, include_deleted: bool = False) -> Quotation:
    """
    견적 row lock (select_for_update). 반드시 transaction.atomic 안에서 호출.
    같은 견적을 동시에 수정하는 요청은 여기서 직렬화된다.
    """
    qs = Quotation.objects.select_for_update()
    if not include_deleted:
        qs = qs.filter(is_deleted=False)
    try:
        return qs.get(pk=quotation_id)
    except DatabaseError as exc:
        raise ConcurrencyConflict(
            f"Quotation {quotation_id} is being modified by another request; retry.",
            quotation_id=quotation_id,
        ) from exc


def ensure_editable(quotation: Quotation) -> None:
    if not quotation.is_editable:
        raise InvalidStatus(
            f"Quotation {quotation.code} is {quotation.status}; only draft quotations can be edited.",
            quotation_id=quotation.pk,
            status=quotation.status,
        )
