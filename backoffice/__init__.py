"""Back-office application for the pharmacy service.

This package contains models, domain services, request serializers,
views and route registrations for patients, inventory, prescriptions,
wallets and appointment booking.
"""
