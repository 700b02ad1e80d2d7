from rest_framework import serializers

from backoffice.models import AppointmentSlot, Booking

from .common import PaginationQuerySerializer, clean_text

SERVICE_VALUES = [value for value, _ in AppointmentSlot.SERVICE_CHOICES]
SLOT_STATUS_VALUES = [value for value, _ in AppointmentSlot.STATUS_CHOICES]
BOOKING_STATUS_VALUES = [value for value, _ in Booking.STATUS_CHOICES]


class SlotCreateSerializer(serializers.Serializer):
    date = serializers.DateField()
    startTime = serializers.TimeField(input_formats=['%H:%M:%S'])
    endTime = serializers.TimeField(input_formats=['%H:%M:%S'])
    serviceType = serializers.ChoiceField(choices=SERVICE_VALUES)


class SlotUpdateSerializer(SlotCreateSerializer):
    def __init__(self, *args, **kwargs):
        kwargs.setdefault('partial', True)
        super().__init__(*args, **kwargs)


class SlotListQuerySerializer(PaginationQuerySerializer):
    date = serializers.DateField(required=False)
    serviceType = serializers.ChoiceField(choices=SERVICE_VALUES, required=False)
    status = serializers.ChoiceField(choices=SLOT_STATUS_VALUES, required=False, default=AppointmentSlot.STATUS_AVAILABLE)


class AvailableSlotsQuerySerializer(serializers.Serializer):
    date = serializers.DateField(required=False)
    serviceType = serializers.ChoiceField(choices=SERVICE_VALUES, required=False)


class BookingCreateSerializer(serializers.Serializer):
    patientId = serializers.UUIDField()
    slotId = serializers.UUIDField()
    notes = serializers.CharField(max_length=500, required=False, allow_blank=True)

    def validate_notes(self, v):
        return clean_text(v)


class BookingListQuerySerializer(PaginationQuerySerializer):
    patientId = serializers.UUIDField(required=False)
    status = serializers.ChoiceField(choices=BOOKING_STATUS_VALUES, required=False)
    date = serializers.DateField(required=False)
