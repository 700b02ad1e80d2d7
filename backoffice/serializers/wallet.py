from decimal import Decimal

from rest_framework import serializers

from backoffice.models import Transaction

from .common import PaginationQuerySerializer, clean_text


class AddFundsSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=15, decimal_places=2, min_value=Decimal('0.01'))


class PaymentSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=15, decimal_places=2, min_value=Decimal('0.01'))
    description = serializers.CharField(min_length=1, max_length=255)
    referenceId = serializers.UUIDField(required=False)

    def validate_description(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('description is required')
        return v


class TransactionHistoryQuerySerializer(PaginationQuerySerializer):
    type = serializers.ChoiceField(choices=[value for value, _ in Transaction.TYPE_CHOICES], required=False)
