from django.db import models
from django.db.models import Q


class KPICategory(models.TextChoices):
    VIEWS = 'VIEWS', 'Views'
    LIKES = 'LIKES', 'Likes'
    COMMENTS = 'COMMENTS', 'Comments'
    SHARES = 'SHARES', 'Shares'
    SAVES = 'SAVES', 'Saves'
    QTY_POST = 'QTY_POST', 'Post quantity'
    VIDEO_COUNT = 'VIDEO_COUNT', 'Video count'
    FYP_COUNT = 'FYP_COUNT', 'FYP count'
    YELLOW_CART = 'YELLOW_CART', 'Yellow cart'
    GMV_IDR = 'GMV_IDR', 'GMV (IDR)'


class KPI(models.Model):
    """Target vs. actual of one category within one scope.

    ``account`` is null for the campaign-wide scope.
    """

    class Meta:
        app_label = 'kpis'
        verbose_name = 'KPI'
        constraints = [
            models.UniqueConstraint(
                fields=['campaign', 'account', 'category'],
                name='unique_kpi_per_account_scope'
            ),
            models.UniqueConstraint(
                fields=['campaign', 'category'],
                condition=Q(account__isnull=True),
                name='unique_kpi_per_campaign_scope'
            ),
        ]
        indexes = [
            models.Index(fields=['campaign', 'account']),
        ]

    campaign = models.ForeignKey('campaigns.Campaign', on_delete=models.CASCADE, related_name='kpis')
    account = models.ForeignKey(
        'accounts.Account',
        on_delete=models.CASCADE,
        related_name='kpis',
        null=True,
        blank=True,
    )
    category = models.CharField(max_length=20, choices=KPICategory.choices)
    target = models.BigIntegerField(default=0)
    actual = models.BigIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        scope = self.account_id if self.account_id is not None else 'campaign'
        return f"{self.campaign_id}/{scope}/{self.category}"

    @property
    def remaining(self):
        return self.target - self.actual

    @property
    def is_campaign_wide(self):
        return self.account_id is None
