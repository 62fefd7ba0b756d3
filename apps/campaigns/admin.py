from django.contrib import admin
from .models import Campaign, CampaignAccount


class CampaignAccountInline(admin.TabularInline):
    model = CampaignAccount
    extra = 0


@admin.register(Campaign)
class CampaignAdmin(admin.ModelAdmin):
    list_display = ('name', 'brand_name', 'status', 'start_date', 'end_date')
    list_filter = ('status',)
    search_fields = ('name', 'brand_name')
    inlines = [CampaignAccountInline]
