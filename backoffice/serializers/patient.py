from django.utils import timezone
from rest_framework import serializers

from .common import PaginationQuerySerializer, clean_text


class PatientCreateSerializer(serializers.Serializer):
    name = serializers.CharField(min_length=2, max_length=100)
    email = serializers.EmailField(max_length=150)
    phone = serializers.CharField(min_length=10, max_length=20)
    dateOfBirth = serializers.DateField()

    def validate_name(self, v):
        v = clean_text(v)
        if len(v) < 2:
            raise serializers.ValidationError('name must be at least 2 characters')
        return v

    def validate_phone(self, v):
        return clean_text(v)

    def validate_dateOfBirth(self, v):
        if v >= timezone.localdate():
            raise serializers.ValidationError('date of birth must be in the past')
        return v


class PatientUpdateSerializer(PatientCreateSerializer):
    def __init__(self, *args, **kwargs):
        kwargs.setdefault('partial', True)
        super().__init__(*args, **kwargs)


class PatientSearchQuerySerializer(PaginationQuerySerializer):
    name = serializers.CharField(min_length=2, max_length=100, required=False)
    email = serializers.CharField(max_length=150, required=False)

    def validate(self, attrs):
        if not attrs.get('name') and not attrs.get('email'):
            raise serializers.ValidationError('Please provide name or email to search')
        return attrs
