from rest_framework import serializers

from .aggregates import is_engine_owned
from .models import KPI


class KPISerializer(serializers.ModelSerializer):
    remaining = serializers.IntegerField(read_only=True)
    is_campaign_wide = serializers.BooleanField(read_only=True)
    engine_owned = serializers.SerializerMethodField()

    class Meta:
        model = KPI
        fields = [
            'id', 'campaign', 'account', 'category', 'target', 'actual',
            'remaining', 'is_campaign_wide', 'engine_owned', 'created_at', 'updated_at',
        ]
        read_only_fields = ['created_at', 'updated_at']
        # Uniqueness is checked in validate(), the null-account case included
        validators = []

    def get_engine_owned(self, obj):
        return is_engine_owned(obj.category)

    def validate_target(self, value):
        if value < 0:
            raise serializers.ValidationError("target must be a non-negative integer")
        return value

    def validate(self, data):
        if self.instance is not None:
            for field in ('campaign', 'account', 'category'):
                if field in data and data[field] != getattr(self.instance, field):
                    raise serializers.ValidationError({field: "The scope of a KPI cannot be changed"})
        category = data.get('category', getattr(self.instance, 'category', None))

        if 'actual' in data and is_engine_owned(category):
            current = getattr(self.instance, 'actual', 0)
            if data['actual'] != current:
                raise serializers.ValidationError(
                    {'actual': f"{category} is calculated from posts and cannot be set"}
                )

        if self.instance is None:
            duplicates = KPI.objects.filter(
                campaign=data['campaign'], account=data.get('account'), category=category
            )
            if duplicates.exists():
                raise serializers.ValidationError("A KPI for this scope and category already exists")
        return data
