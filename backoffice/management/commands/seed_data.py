"""
Management command to populate the database with demo data.

Running it twice is safe: medications and slots are looked up before
being created and patients are skipped when their email already exists.
"""
from datetime import date, time, timedelta
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.utils import timezone

from backoffice.models import AppointmentSlot, Medication, Patient
from backoffice.services import patients as patient_service
from backoffice.services import wallets as wallet_service

MEDICATIONS = [
    ('Amoxicillin 500mg', 120, Decimal('0.85'), 'Broad-spectrum antibiotic'),
    ('Ibuprofen 200mg', 300, Decimal('0.15'), 'Pain relief and anti-inflammatory'),
    ('Metformin 850mg', 80, Decimal('0.40'), 'Type 2 diabetes'),
    ('Lisinopril 10mg', 6, Decimal('0.55'), 'Blood pressure'),
    ('Salbutamol Inhaler', 4, Decimal('12.50'), 'Asthma reliever'),
]

PATIENTS = [
    ('Alice Martin', 'alice.martin@example.com', '+15550100001', date(1985, 3, 14), Decimal('150.00')),
    ('Bruno Silva', 'bruno.silva@example.com', '+15550100002', date(1972, 11, 2), Decimal('40.00')),
    ('Chen Wei', 'chen.wei@example.com', '+15550100003', date(1999, 7, 21), Decimal('0.00')),
]

SLOT_TIMES = [(time(9, 0), time(9, 30)), (time(10, 0), time(10, 30)), (time(14, 0), time(14, 30))]


class Command(BaseCommand):
    help = 'Populate database with demo medications, patients and appointment slots'

    def add_arguments(self, parser):
        parser.add_argument('--days', type=int, default=5, help='number of days of appointment slots to create')

    def handle(self, *args, **options):
        self.stdout.write('Seeding demo data...')
        self.create_medications()
        self.create_patients()
        self.create_slots(options['days'])
        self.stdout.write(self.style.SUCCESS('Demo data ready'))

    def create_medications(self):
        created = 0
        for name, stock, price, description in MEDICATIONS:
            _, was_created = Medication.objects.get_or_create(
                name=name,
                defaults={'stock_quantity': stock, 'unit_price': price, 'description': description},
            )
            created += int(was_created)
        self.stdout.write(f'  medications: {created} created')

    def create_patients(self):
        created = 0
        for name, email, phone, dob, funds in PATIENTS:
            if Patient.objects.filter(email__iexact=email).exists():
                continue
            patient = patient_service.register_patient(name=name, email=email, phone=phone, date_of_birth=dob)
            if funds > 0:
                wallet_service.add_funds(patient.id, funds)
            created += 1
        self.stdout.write(f'  patients: {created} created')

    def create_slots(self, days):
        created = 0
        today = timezone.localdate()
        for offset in range(1, days + 1):
            day = today + timedelta(days=offset)
            for i, (start, end) in enumerate(SLOT_TIMES):
                service = AppointmentSlot.SERVICE_PICKUP if i % 2 else AppointmentSlot.SERVICE_CONSULTATION
                _, was_created = AppointmentSlot.objects.get_or_create(
                    date=day, start_time=start, end_time=end,
                    defaults={'service_type': service},
                )
                created += int(was_created)
        self.stdout.write(f'  appointment slots: {created} created')
