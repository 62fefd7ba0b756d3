from django.contrib import admin
from .models import Account


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = ('name', 'tiktok_handle', 'account_type', 'brand')
    search_fields = ('name', 'tiktok_handle')
