from django.contrib import admin
from .models import Post


@admin.register(Post)
class PostAdmin(admin.ModelAdmin):
    list_display = ('post_title', 'campaign', 'account', 'post_date', 'total_view')
    list_filter = ('content_type', 'yellow_cart')
    search_fields = ('post_title',)
