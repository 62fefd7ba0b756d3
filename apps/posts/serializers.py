from rest_framework import serializers

from .models import Post


class PostSerializer(serializers.ModelSerializer):
    engagement_rate = serializers.FloatField(read_only=True)

    class Meta:
        model = Post
        fields = [
            'id', 'campaign', 'account', 'post_date', 'post_day', 'post_title',
            'content_type', 'content_category', 'content_link', 'status',
            'fyp_type', 'ads_on_music', 'yellow_cart',
            'total_view', 'total_like', 'total_comment', 'total_share', 'total_saved',
            'engagement_rate', 'created_at', 'updated_at',
        ]
        read_only_fields = ['post_day', 'created_at', 'updated_at']

    def to_internal_value(self, data):
        # A missing engagement counter means 0
        if hasattr(data, 'copy'):
            data = data.copy()
            for field in Post.COUNTER_FIELDS:
                if field in data and data[field] in (None, ''):
                    data[field] = 0
        return super().to_internal_value(data)
