from django.db import models
from django.core.exceptions import ValidationError
from django.utils import timezone


class Campaign(models.Model):
    class Meta:
        app_label = 'campaigns'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status']),
            models.Index(fields=['start_date']),
        ]

    class Status(models.TextChoices):
        PLANNED = 'PLANNED', 'Planned'
        ACTIVE = 'ACTIVE', 'Active'
        PAUSED = 'PAUSED', 'Paused'
        COMPLETED = 'COMPLETED', 'Completed'

    # Campaign fields read by the KPI aggregates
    AGGREGATE_FIELDS = ('target_views_for_fyp',)

    name = models.CharField(max_length=200)
    brand_name = models.CharField(max_length=200)
    categories = models.JSONField(default=list, blank=True)
    start_date = models.DateField()
    end_date = models.DateField()
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PLANNED)
    description = models.TextField(blank=True, default='')
    quotation_number = models.CharField(max_length=100, null=True, blank=True)
    # Campaign goal: a post counts towards FYP_COUNT once its views reach this
    target_views_for_fyp = models.PositiveIntegerField(null=True, blank=True)
    accounts = models.ManyToManyField(
        'accounts.Account',
        through='CampaignAccount',
        related_name='campaigns',
        blank=True,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    def clean(self):
        if self.start_date and self.end_date and self.start_date >= self.end_date:
            raise ValidationError("start_date must be before end_date")

    def can_transition_to(self, new_status):
        """Validate status transitions"""
        valid_transitions = {
            self.Status.PLANNED: [self.Status.ACTIVE, self.Status.PAUSED],
            self.Status.ACTIVE: [self.Status.PAUSED, self.Status.COMPLETED],
            self.Status.PAUSED: [self.Status.ACTIVE, self.Status.COMPLETED],
            self.Status.COMPLETED: [],  # Terminal state
        }
        return new_status in valid_transitions.get(self.status, [])

    def save(self, *args, **kwargs):
        if self.pk:  # Updating existing
            old_status = (
                Campaign.objects.filter(pk=self.pk)
                .values_list('status', flat=True)
                .first()
            )
            if old_status and old_status != self.status:
                old_instance = Campaign(status=old_status)
                if not old_instance.can_transition_to(self.status):
                    raise ValidationError(
                        f"Cannot transition from {old_status} to {self.status}"
                    )
        self.clean()
        super().save(*args, **kwargs)

    def linked_account_ids(self):
        return list(
            self.memberships.filter(status=CampaignAccount.Status.LINKED)
            .values_list('account_id', flat=True)
        )


class CampaignAccount(models.Model):
    """Membership of an account in a campaign.

    Unlinking flips ``status`` instead of deleting the row, so KPI rows of the
    pair outlive the membership.
    """

    class Meta:
        app_label = 'campaigns'
        constraints = [
            models.UniqueConstraint(
                fields=['campaign', 'account'],
                name='unique_campaign_account_link'
            )
        ]
        indexes = [
            models.Index(fields=['account', 'status']),
        ]

    class Status(models.TextChoices):
        LINKED = 'LINKED', 'Linked'
        UNLINKED = 'UNLINKED', 'Unlinked'

    campaign = models.ForeignKey(Campaign, on_delete=models.CASCADE, related_name='memberships')
    account = models.ForeignKey('accounts.Account', on_delete=models.CASCADE, related_name='memberships')
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.LINKED)
    linked_at = models.DateTimeField(default=timezone.now)
    unlinked_at = models.DateTimeField(null=True, blank=True)

    @property
    def is_linked(self):
        return self.status == self.Status.LINKED
