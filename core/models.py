from django.db import models


class Setting(models.Model):
    """
    Runtime override for a business default in ``settings.ERP_DEFAULTS``.
    - value is stored as text and cast by value_type on read.
    """

    class ValueType(models.TextChoices):
        STRING = "string", "String"
        INTEGER = "integer", "Integer"
        DECIMAL = "decimal", "Decimal"
        BOOLEAN = "boolean", "Boolean"

    group = models.CharField(max_length=50)
    key = models.CharField(max_length=80)
    value = models.CharField(max_length=255, blank=True, default="")
    value_type = models.CharField(max_length=10, choices=ValueType.choices, default=ValueType.STRING)
    description = models.CharField(max_length=200, blank=True)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["group", "key"]
        constraints = [
            models.UniqueConstraint(fields=["group", "key"], name="uniq_setting_group_key"),
        ]

    def __str__(self) -> str:
        return f"{self.group}.{self.key}={self.value}"
