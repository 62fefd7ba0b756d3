from django.contrib import admin
from .models import KPI


@admin.register(KPI)
class KPIAdmin(admin.ModelAdmin):
    list_display = ('campaign', 'account', 'category', 'target', 'actual')
    list_filter = ('category',)
    readonly_fields = ('actual',)
