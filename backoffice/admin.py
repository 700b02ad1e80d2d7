"""
Django admin registrations for the back-office models.

Ledger rows are append-only, so the transaction admin is read-only.
"""
from django.contrib import admin

from .models import AppointmentSlot, Booking, Medication, Patient, Prescription, Transaction, Wallet


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('name', 'email', 'phone', 'date_of_birth', 'created_at')
    search_fields = ('name', 'email')


@admin.register(Medication)
class MedicationAdmin(admin.ModelAdmin):
    list_display = ('name', 'stock_quantity', 'unit_price', 'updated_at')
    search_fields = ('name',)


@admin.register(Prescription)
class PrescriptionAdmin(admin.ModelAdmin):
    list_display = ('medication_name', 'patient', 'quantity', 'status', 'total_amount', 'created_at')
    list_filter = ('status',)
    search_fields = ('medication_name', 'patient__name')


@admin.register(Wallet)
class WalletAdmin(admin.ModelAdmin):
    list_display = ('patient', 'balance', 'updated_at')
    search_fields = ('patient__name', 'patient__email')
    readonly_fields = ('balance',)


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ('wallet', 'type', 'amount', 'balance_before', 'balance_after', 'created_at')
    list_filter = ('type',)

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(AppointmentSlot)
class AppointmentSlotAdmin(admin.ModelAdmin):
    list_display = ('date', 'start_time', 'end_time', 'service_type', 'status')
    list_filter = ('service_type', 'status', 'date')


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ('patient', 'slot', 'status', 'created_at')
    list_filter = ('status',)
