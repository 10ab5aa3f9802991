from decimal import Decimal, InvalidOperation

from django.conf import settings

from core.exceptions import ConfigurationError
from core.models import Setting

_MISSING = object()


def _cast(value: str, value_type: str):
    if value_type == Setting.ValueType.INTEGER:
        return int(value)
    if value_type == Setting.ValueType.DECIMAL:
        return Decimal(value)
    if value_type == Setting.ValueType.BOOLEAN:
        return value.strip().lower() in ("1", "true", "yes", "on")
    return value


def get_setting(group: str, key: str, default=_MISSING):
    """
    Resolve a business setting:
      1) core.Setting row (group, key)
      2) settings.ERP_DEFAULTS[group][key]
      3) the explicit default argument
    No caching: every call reads the current value.
    """
    row = Setting.objects.filter(group=group, key=key).first()
    if row is not None:
        try:
            return _cast(row.value, row.value_type)
        except (ValueError, InvalidOperation) as exc:
            raise ConfigurationError(f"Setting {group}.{key} has an invalid {row.value_type} value: {row.value!r}") from exc

    defaults = getattr(settings, "ERP_DEFAULTS", {})
    if key in defaults.get(group, {}):
        return defaults[group][key]

    if default is _MISSING:
        raise ConfigurationError(f"Missing system default {group}.{key}")
    return default


def set_setting(group: str, key: str, value, value_type: str = Setting.ValueType.STRING) -> Setting:
    row, _ = Setting.objects.update_or_create(
        group=group,
        key=key,
        defaults={"value": str(value), "value_type": value_type},
    )
    return row


def get_decimal_setting(group: str, key: str) -> Decimal:
    return Decimal(str(get_setting(group, key)))
