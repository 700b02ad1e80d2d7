from decimal import Decimal

from rest_framework import serializers

from .common import PaginationQuerySerializer, clean_text


class MedicationCreateSerializer(serializers.Serializer):
    name = serializers.CharField(min_length=2, max_length=200)
    stockQuantity = serializers.IntegerField(min_value=0)
    unitPrice = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0'))
    description = serializers.CharField(max_length=1000, required=False, allow_blank=True)

    def validate_name(self, v):
        v = clean_text(v)
        if len(v) < 2:
            raise serializers.ValidationError('name must be at least 2 characters')
        return v

    def validate_description(self, v):
        return clean_text(v)


class MedicationUpdateSerializer(MedicationCreateSerializer):
    def __init__(self, *args, **kwargs):
        kwargs.setdefault('partial', True)
        super().__init__(*args, **kwargs)


class MedicationListQuerySerializer(PaginationQuerySerializer):
    search = serializers.CharField(max_length=200, required=False, allow_blank=True)


class StockUpdateSerializer(serializers.Serializer):
    stockQuantity = serializers.IntegerField(min_value=0)


class RestockSerializer(serializers.Serializer):
    # lower bound is enforced by the inventory service
    quantity = serializers.IntegerField()


class LowStockQuerySerializer(PaginationQuerySerializer):
    threshold = serializers.IntegerField(min_value=1, required=False)
