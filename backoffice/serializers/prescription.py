from rest_framework import serializers

from backoffice.models import Prescription

from .common import PaginationQuerySerializer, clean_text

STATUS_VALUES = [value for value, _ in Prescription.STATUS_CHOICES]


class PrescriptionCreateSerializer(serializers.Serializer):
    patientId = serializers.UUIDField()
    medicationName = serializers.CharField(min_length=2, max_length=200)
    dosage = serializers.CharField(min_length=1, max_length=100)
    quantity = serializers.IntegerField(min_value=1)
    instructions = serializers.CharField(max_length=1000, required=False, allow_blank=True)
    prescribedBy = serializers.CharField(max_length=100, required=False, allow_blank=True)

    def validate_medicationName(self, v):
        # matched against Medication.name verbatim, so only trim
        return (v or '').strip()

    def validate_dosage(self, v):
        return clean_text(v)

    def validate_instructions(self, v):
        return clean_text(v)

    def validate_prescribedBy(self, v):
        return clean_text(v)


class PrescriptionStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=STATUS_VALUES)


class PrescriptionListQuerySerializer(PaginationQuerySerializer):
    patientId = serializers.UUIDField(required=False)
    status = serializers.ChoiceField(choices=STATUS_VALUES, required=False)
