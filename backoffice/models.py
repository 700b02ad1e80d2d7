"""
Database models for the pharmacy back-office.

Seven tables back the service: patients, medications, prescriptions,
wallets, transactions, appointment slots and bookings.  Primary keys are
UUIDs so identifiers stay opaque to API clients.  Models carry storage
constraints only; business rules live in :mod:`backoffice.services`.
"""
from __future__ import annotations

import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q, F


class TimestampedModel(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Patient(TimestampedModel):
    """A registered patient.

    Owns exactly one :class:`Wallet` (created together with the patient)
    and any number of prescriptions and bookings.  Deleting a patient
    cascades to all of them.
    """
    name = models.CharField(max_length=255)
    email = models.EmailField(max_length=150, unique=True)
    phone = models.CharField(max_length=20)
    date_of_birth = models.DateField()

    class Meta:
        db_table = 'patients'
        indexes = [models.Index(fields=['name'])]

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"


class Medication(TimestampedModel):
    name = models.CharField(max_length=250, db_index=True)
    # 库存不可为负，在扣减处校验，并由数据库约束兜底
    stock_quantity = models.PositiveIntegerField(default=0, db_index=True)
    unit_price = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))],
    )
    description = models.CharField(max_length=1000, blank=True, null=True)

    class Meta:
        db_table = 'medications'
        constraints = [
            models.CheckConstraint(condition=Q(stock_quantity__gte=0), name='medication_stock_non_negative'),
            models.CheckConstraint(condition=Q(unit_price__gte=0), name='medication_price_non_negative'),
        ]

    def __str__(self) -> str:
        return f"{self.name} (stock={self.stock_quantity})"


class Prescription(TimestampedModel):
    """A prescription issued to a patient.

    ``medication_name`` is free text matched against :class:`Medication`
    by exact name when the prescription is filled; it is not a foreign key.
    """
    STATUS_PENDING = 'pending'
    STATUS_FILLED = 'filled'
    STATUS_PICKED_UP = 'picked-up'
    STATUS_CHOICES = (
        (STATUS_PENDING, 'Pending'),
        (STATUS_FILLED, 'Filled'),
        (STATUS_PICKED_UP, 'Picked up'),
    )

    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='prescriptions')
    medication_name = models.CharField(max_length=200, db_index=True)
    dosage = models.CharField(max_length=100)
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    instructions = models.TextField(blank=True, null=True)
    prescribed_by = models.CharField(max_length=100, blank=True, null=True)
    total_amount = models.DecimalField(max_digits=10, decimal_places=2, blank=True, null=True)

    class Meta:
        db_table = 'prescriptions'
        constraints = [
            models.CheckConstraint(condition=Q(quantity__gte=1), name='prescription_quantity_positive'),
        ]

    def __str__(self) -> str:
        return f"{self.medication_name} x{self.quantity} for {self.patient_id} [{self.status}]"


class Wallet(TimestampedModel):
    patient = models.OneToOneField(Patient, on_delete=models.CASCADE, related_name='wallet')
    balance = models.DecimalField(max_digits=15, decimal_places=2, default=Decimal('0.00'))

    class Meta:
        db_table = 'wallets'
        constraints = [
            models.CheckConstraint(condition=Q(balance__gte=0), name='wallet_balance_non_negative'),
        ]

    def __str__(self) -> str:
        return f"wallet {self.id} balance={self.balance}"


class Transaction(TimestampedModel):
    """Append-only audit record of a wallet balance change."""
    TYPE_CREDIT = 'credit'
    TYPE_DEBIT = 'debit'
    TYPE_CHOICES = ((TYPE_CREDIT, 'Credit'), (TYPE_DEBIT, 'Debit'))

    wallet = models.ForeignKey(Wallet, on_delete=models.CASCADE, related_name='transactions')
    type = models.CharField(max_length=10, choices=TYPE_CHOICES, db_index=True)
    amount = models.DecimalField(max_digits=15, decimal_places=2)
    description = models.CharField(max_length=255)
    reference_id = models.UUIDField(blank=True, null=True, db_index=True)
    balance_before = models.DecimalField(max_digits=15, decimal_places=2)
    balance_after = models.DecimalField(max_digits=15, decimal_places=2)

    class Meta:
        db_table = 'transactions'
        constraints = [
            models.CheckConstraint(condition=Q(amount__gt=0), name='transaction_amount_positive'),
            models.CheckConstraint(condition=Q(balance_before__gte=0), name='transaction_before_non_negative'),
            models.CheckConstraint(condition=Q(balance_after__gte=0), name='transaction_after_non_negative'),
        ]
        indexes = [models.Index(fields=['wallet', 'created_at'])]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise RuntimeError('transactions are immutable once recorded')
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.type} {self.amount} ({self.balance_before} -> {self.balance_after})"


class AppointmentSlot(TimestampedModel):
    SERVICE_CONSULTATION = 'consultation'
    SERVICE_PICKUP = 'pickup'
    SERVICE_CHOICES = (
        (SERVICE_CONSULTATION, 'Consultation'),
        (SERVICE_PICKUP, 'Pickup'),
    )

    STATUS_AVAILABLE = 'available'
    STATUS_BOOKED = 'booked'
    STATUS_CANCELLED = 'cancelled'
    STATUS_COMPLETED = 'completed'
    STATUS_CHOICES = (
        (STATUS_AVAILABLE, 'Available'),
        (STATUS_BOOKED, 'Booked'),
        (STATUS_CANCELLED, 'Cancelled'),
        (STATUS_COMPLETED, 'Completed'),
    )

    date = models.DateField(db_index=True)
    start_time = models.TimeField()
    end_time = models.TimeField()
    service_type = models.CharField(max_length=16, choices=SERVICE_CHOICES, db_index=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_AVAILABLE, db_index=True)

    class Meta:
        db_table = 'appointment_slots'
        constraints = [
            models.UniqueConstraint(fields=['date', 'start_time', 'end_time'], name='unique_slot_interval'),
            models.CheckConstraint(condition=Q(end_time__gt=F('start_time')), name='slot_end_after_start'),
        ]

    def is_available(self) -> bool:
        return self.status == self.STATUS_AVAILABLE

    def __str__(self) -> str:
        return f"{self.date} {self.start_time}-{self.end_time} {self.service_type} [{self.status}]"


class Booking(TimestampedModel):
    STATUS_BOOKED = AppointmentSlot.STATUS_BOOKED
    STATUS_CANCELLED = AppointmentSlot.STATUS_CANCELLED
    STATUS_COMPLETED = AppointmentSlot.STATUS_COMPLETED
    STATUS_CHOICES = (
        (STATUS_BOOKED, 'Booked'),
        (STATUS_CANCELLED, 'Cancelled'),
        (STATUS_COMPLETED, 'Completed'),
    )

    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='bookings')
    slot = models.ForeignKey(AppointmentSlot, on_delete=models.CASCADE, related_name='bookings')
    notes = models.TextField(blank=True, null=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_BOOKED, db_index=True)

    class Meta:
        db_table = 'bookings'

    def __str__(self) -> str:
        return f"booking {self.id} patient={self.patient_id} slot={self.slot_id} [{self.status}]"
