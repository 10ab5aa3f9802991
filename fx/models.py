from django.db import models


class ExchangeRatePeriod(models.Model):
    """
    환율 기간(수동 설정). 외화 -> PEN.
    - 견적 생성 시점에 이 기간의 환율을 찾아 '스냅샷'으로 복사한다.
    - 기간 자체를 나중에 바꾸더라도, 이미 생성된 견적에는 영향이 없다.
    """

    currency = models.CharField(max_length=3, default="USD")

    start_date = models.DateField()
    end_date = models.DateField(null=True, blank=True)  # 비워두면 '끝이 없는 기간(open-ended)'

    rate_to_pen = models.DecimalField(max_digits=12, decimal_places=6)

    memo = models.CharField(max_length=200, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["currency", "-start_date"]

    def __str__(self) -> str:
        end = self.end_date.isoformat() if self.end_date else "open"
        return f"FX {self.currency} {self.start_date.isoformat()} ~ {end} : {self.rate_to_pen}"

