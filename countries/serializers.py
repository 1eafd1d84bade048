from rest_framework import serializers
from .models import Country


class CountrySerializer(serializers.ModelSerializer):
    class Meta:
        model = Country
        fields = [
            'id', 'name', 'capital', 'region', 'population',
            'currency_code', 'exchange_rate', 'estimated_gdp',
            'flag_url', 'last_refreshed_at', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'estimated_gdp', 'last_refreshed_at', 'created_at', 'updated_at']


class CountryCreateSerializer(CountrySerializer):
    """Validates client input for an explicit single-country create."""
    class Meta(CountrySerializer.Meta):
        # name uniqueness ignores case, checked in validate()
        validators = []

    name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    population = serializers.IntegerField(required=False, allow_null=True)
    currency_code = serializers.CharField(max_length=10, required=False, allow_blank=True, allow_null=True)

    def validate(self, data):
        errors = {}
        name = (data.get('name') or '').strip()
        if not name:
            errors['name'] = 'is required'
        elif Country.objects.filter(name__iexact=name).exists():
            errors['name'] = 'already exists'

        population = data.get('population')
        if population is None:
            errors['population'] = 'is required'
        elif population < 0:
            errors['population'] = 'must not be negative'

        if not data.get('currency_code'):
            errors['currency_code'] = 'is required'

        if errors:
            raise serializers.ValidationError({'error': 'Validation failed', 'details': errors})
        data['name'] = name
        return data


class CountryListSerializer(CountrySerializer):
    """List projection: missing numbers read as 0."""

    def to_representation(self, instance):
        data = super().to_representation(instance)
        for field in ('population', 'exchange_rate', 'estimated_gdp'):
            if data.get(field) is None:
                data[field] = 0
        return data


class CacheStatusSerializer(serializers.Serializer):
    total_countries = serializers.IntegerField()
    last_refreshed_at = serializers.DateTimeField(allow_null=True)


class RefreshResultSerializer(serializers.Serializer):
    success = serializers.BooleanField()
    last_refreshed_at = serializers.DateTimeField()
