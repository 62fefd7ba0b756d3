from rest_framework import serializers

from apps.campaigns.models import Campaign, CampaignAccount
from .models import Account


class AccountSerializer(serializers.ModelSerializer):
    campaign_ids = serializers.ListField(
        child=serializers.IntegerField(), write_only=True, required=False
    )
    campaign_count = serializers.SerializerMethodField()

    class Meta:
        model = Account
        fields = [
            'id', 'name', 'tiktok_handle', 'account_type', 'brand', 'notes',
            'campaign_ids', 'campaign_count', 'created_at', 'updated_at',
        ]
        read_only_fields = ['created_at', 'updated_at']

    def get_campaign_count(self, obj):
        return obj.memberships.filter(status=CampaignAccount.Status.LINKED).count()

    def validate_tiktok_handle(self, value):
        if value is None:
            return value
        value = value.strip().lstrip('@')
        return value or None

    def validate_campaign_ids(self, value):
        value = list(dict.fromkeys(value))
        found = set(Campaign.objects.filter(id__in=value).values_list('id', flat=True))
        missing = [campaign_id for campaign_id in value if campaign_id not in found]
        if missing:
            raise serializers.ValidationError(f"Unknown campaigns: {missing}")
        return value

    def create(self, validated_data):
        validated_data.pop('campaign_ids', None)
        return super().create(validated_data)

    def update(self, instance, validated_data):
        validated_data.pop('campaign_ids', None)
        return super().update(instance, validated_data)
