from rest_framework import serializers

from apps.accounts.models import Account
from .models import Campaign


class CampaignSerializer(serializers.ModelSerializer):
    account_ids = serializers.ListField(
        child=serializers.IntegerField(), write_only=True, required=False
    )
    accounts = serializers.SerializerMethodField()

    class Meta:
        model = Campaign
        fields = [
            'id', 'name', 'brand_name', 'categories', 'start_date', 'end_date',
            'status', 'description', 'quotation_number', 'target_views_for_fyp',
            'account_ids', 'accounts', 'created_at', 'updated_at',
        ]
        read_only_fields = ['created_at', 'updated_at']

    def get_accounts(self, obj):
        return obj.linked_account_ids()

    def validate_brand_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("brand_name is required and cannot be empty")
        return value

    def validate_quotation_number(self, value):
        if value is None:
            return value
        return value.strip() or None

    def validate_categories(self, value):
        if not isinstance(value, list) or not all(isinstance(c, str) for c in value):
            raise serializers.ValidationError("categories must be a list of strings")
        return value

    def validate_account_ids(self, value):
        value = list(dict.fromkeys(value))
        found = set(Account.objects.filter(id__in=value).values_list('id', flat=True))
        missing = [account_id for account_id in value if account_id not in found]
        if missing:
            raise serializers.ValidationError(f"Unknown accounts: {missing}")
        return value

    def validate(self, data):
        start_date = data.get('start_date', getattr(self.instance, 'start_date', None))
        end_date = data.get('end_date', getattr(self.instance, 'end_date', None))
        if start_date and end_date and start_date >= end_date:
            raise serializers.ValidationError({'end_date': "start_date must be before end_date"})

        new_status = data.get('status')
        if self.instance and new_status and new_status != self.instance.status:
            if not self.instance.can_transition_to(new_status):
                raise serializers.ValidationError(
                    {'status': f"Cannot transition from {self.instance.status} to {new_status}"}
                )
        return data

    def create(self, validated_data):
        validated_data.pop('account_ids', None)
        return super().create(validated_data)

    def update(self, instance, validated_data):
        validated_data.pop('account_ids', None)
        return super().update(instance, validated_data)


class AccountLinkSerializer(serializers.Serializer):
    account_id = serializers.IntegerField()

    def validate_account_id(self, value):
        if not Account.objects.filter(id=value).exists():
            raise serializers.ValidationError(f"Unknown account: {value}")
        return value
