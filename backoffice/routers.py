"""
URL mappings for the pharmacy back-office API.

Trailing slashes are deliberately omitted; ``APPEND_SLASH`` is off so
``/api/patients/`` does not redirect.  Static segments such as
``search`` and ``low-stock`` are listed before the ``<uuid:...>``
patterns they would otherwise be shadowed by.
"""
from django.urls import path, include

from .views import appointments, health, medications, patients, prescriptions, wallets

urlpatterns = [
    path('', include('django_prometheus.urls')),
    path('healthz', health.healthz, name='healthz'),
    path('api', health.api_index, name='api_index'),

    # Patients
    path('api/patients', patients.patients, name='patients'),
    path('api/patients/search', patients.search_patients, name='patient_search'),
    path('api/patients/<uuid:pk>', patients.patient_detail, name='patient_detail'),

    # Medications / inventory
    path('api/medications', medications.medications, name='medications'),
    path('api/medications/low-stock', medications.low_stock, name='medication_low_stock'),
    path('api/medications/<uuid:pk>', medications.medication_detail, name='medication_detail'),
    path('api/medications/<uuid:pk>/stock', medications.medication_stock, name='medication_stock'),
    path('api/medications/<uuid:pk>/restock', medications.medication_restock, name='medication_restock'),

    # Prescriptions
    path('api/prescriptions', prescriptions.prescriptions, name='prescriptions'),
    path('api/prescriptions/patient/<uuid:patient_id>', prescriptions.patient_prescriptions,
         name='patient_prescriptions'),
    path('api/prescriptions/<uuid:pk>', prescriptions.prescription_detail, name='prescription_detail'),
    path('api/prescriptions/<uuid:pk>/status', prescriptions.prescription_status, name='prescription_status'),

    # Wallets
    path('api/wallets/<uuid:patient_id>/balance', wallets.wallet_balance, name='wallet_balance'),
    path('api/wallets/<uuid:patient_id>/add-funds', wallets.add_funds, name='wallet_add_funds'),
    path('api/wallets/<uuid:patient_id>/payment', wallets.payment, name='wallet_payment'),
    path('api/wallets/<uuid:patient_id>/transactions', wallets.transactions, name='wallet_transactions'),
    path('api/wallets/<uuid:patient_id>/summary', wallets.summary, name='wallet_summary'),

    # Appointments
    path('api/appointments/slots', appointments.slots, name='slots'),
    path('api/appointments/slots/available', appointments.available_slots, name='slots_available'),
    path('api/appointments/slots/<uuid:pk>', appointments.slot_detail, name='slot_detail'),
    path('api/appointments/book', appointments.book, name='book'),
    path('api/appointments/bookings', appointments.bookings, name='bookings'),
    path('api/appointments/bookings/<uuid:pk>', appointments.booking_detail, name='booking_detail'),
    path('api/appointments/bookings/<uuid:pk>/cancel', appointments.cancel_booking, name='booking_cancel'),
    path('api/appointments/patient/<uuid:patient_id>', appointments.patient_bookings, name='patient_bookings'),
]
