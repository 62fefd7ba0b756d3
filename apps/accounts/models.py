from django.db import models


class Account(models.Model):
    class Meta:
        app_label = 'accounts'
        ordering = ['name']

    class AccountType(models.TextChoices):
        BRAND_SPECIFIC = 'BRAND_SPECIFIC', 'Brand specific'
        CROSSBRAND = 'CROSSBRAND', 'Crossbrand'

    name = models.CharField(max_length=200)
    tiktok_handle = models.CharField(max_length=100, unique=True, null=True, blank=True)
    account_type = models.CharField(max_length=20, choices=AccountType.choices)
    brand = models.CharField(max_length=200, blank=True, default='')
    notes = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name
