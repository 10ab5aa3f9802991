from django.db import models


class Category(models.Model):
    """
    3단계 카테고리 트리 (1=category, 2=family, 3=subfamily).
    - margin 값이 0이면 "설정 안 됨" -> 부모 값을 상속한다.
    """

    name = models.CharField(max_length=120)
    parent = models.ForeignKey(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="children",
    )
    level = models.PositiveSmallIntegerField(default=1)

    min_margin_percentage = models.DecimalField(max_digits=6, decimal_places=2, default=0)
    normal_margin_percentage = models.DecimalField(max_digits=6, decimal_places=2, default=0)

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["level", "name"]
        verbose_name_plural = "categories"
        constraints = [
            models.CheckConstraint(
                condition=models.Q(level__gte=1) & models.Q(level__lte=3),
                name="category_level_1_to_3",
            ),
        ]

    def __str__(self) -> str:
        return self.name

    @property
    def path(self) -> str:
        names = [self.name]
        parent = self.parent
        while parent is not None and len(names) < 32:
            names.insert(0, parent.name)
            parent = parent.parent
        return " > ".join(names)


class Product(models.Model):
    sku = models.CharField(max_length=50, unique=True)
    name = models.CharField(max_length=200)
    brand = models.CharField(max_length=80, blank=True)

    category = models.ForeignKey(
        "catalog.Category",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="products",
    )

    # 창고 평균원가가 없을 때 쓰는 기준 원가
    distribution_price = models.DecimalField(max_digits=12, decimal_places=2, default=0)

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["sku"]

    def __str__(self) -> str:
        return f"{self.sku} - {self.name}"
