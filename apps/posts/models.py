from django.db import models


def engagement_rate(views, interactions):
    """Interactions per view, rounded to 4 places; 0.0 without views."""
    if not views:
        return 0.0
    return round(interactions / views, 4)


class Post(models.Model):
    class Meta:
        app_label = 'posts'
        ordering = ['-post_date']
        indexes = [
            models.Index(fields=['campaign', 'account']),
            models.Index(fields=['post_date']),
        ]

    class FypType(models.TextChoices):
        ORGANIC = 'ORG', 'Organic'
        ADS = 'ADS', 'Ads'

    # Inputs of the KPI aggregates; a change to any of them needs a recalculation
    COUNTER_FIELDS = ('total_view', 'total_like', 'total_comment', 'total_share', 'total_saved')
    AGGREGATE_FIELDS = COUNTER_FIELDS + ('content_type', 'yellow_cart')

    campaign = models.ForeignKey('campaigns.Campaign', on_delete=models.CASCADE, related_name='posts')
    account = models.ForeignKey('accounts.Account', on_delete=models.CASCADE, related_name='posts')
    post_date = models.DateTimeField()
    post_day = models.CharField(max_length=10, editable=False)
    post_title = models.CharField(max_length=300)
    content_type = models.CharField(max_length=50, blank=True, default='')
    content_category = models.CharField(max_length=100, blank=True, default='')
    content_link = models.URLField(max_length=500, null=True, blank=True)
    status = models.CharField(max_length=50, blank=True, default='')
    fyp_type = models.CharField(max_length=3, choices=FypType.choices, null=True, blank=True)
    ads_on_music = models.BooleanField(default=False)
    yellow_cart = models.BooleanField(default=False)
    total_view = models.PositiveBigIntegerField(default=0)
    total_like = models.PositiveBigIntegerField(default=0)
    total_comment = models.PositiveBigIntegerField(default=0)
    total_share = models.PositiveBigIntegerField(default=0)
    total_saved = models.PositiveBigIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.post_title

    def save(self, *args, **kwargs):
        if self.post_date:
            self.post_day = self.post_date.strftime('%A')
        super().save(*args, **kwargs)

    @property
    def engagement_rate(self):
        return engagement_rate(
            self.total_view or 0,
            (self.total_like or 0)
            + (self.total_comment or 0)
            + (self.total_share or 0)
            + (self.total_saved or 0),
        )

    def scope_snapshot(self):
        """Values that decide which KPI scopes this post feeds and with what."""
        snapshot = {field: getattr(self, field) for field in self.AGGREGATE_FIELDS}
        snapshot['campaign_id'] = self.campaign_id
        snapshot['account_id'] = self.account_id
        return snapshot
