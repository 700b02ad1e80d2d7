"""
Integration tests for the pharmacy back-office API.

These tests drive the REST endpoints end to end with DRF's APIClient:
envelopes, status codes, pagination and the booking, prescription and
wallet flows.
"""
import uuid
from datetime import timedelta
from decimal import Decimal

from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from ..models import AppointmentSlot, Booking, Medication, Patient, Prescription, Transaction, Wallet


class PharmacyAPITests(APITestCase):
    def setUp(self) -> None:
        self.day = (timezone.localdate() + timedelta(days=1)).isoformat()
        self.patient = self.register('Jane Doe', 'jane@example.com')
        self.other = self.register('John Roe', 'john@example.com')

    def register(self, name, email):
        resp = self.client.post(reverse('patients'), {
            'name': name, 'email': email, 'phone': '+15550001111', 'dateOfBirth': '1990-05-01',
        }, format='json')
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, resp.data)
        return resp.data['data']

    def create_slot(self, start, end, service='consultation'):
        return self.client.post(reverse('slots'), {
            'date': self.day, 'startTime': start, 'endTime': end, 'serviceType': service,
        }, format='json')

    # -- patients --------------------------------------------------------

    def test_register_and_fetch_patient_with_wallet(self):
        resp = self.client.get(reverse('patient_detail', args=[self.patient['id']]))
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.data['ok'])
        self.assertEqual(resp.data['data']['email'], 'jane@example.com')
        self.assertEqual(resp.data['data']['wallet']['balance'], '0.00')

    def test_duplicate_email_conflicts(self):
        resp = self.client.post(reverse('patients'), {
            'name': 'Jane Again', 'email': 'jane@example.com', 'phone': '+15550002222', 'dateOfBirth': '1991-01-01',
        }, format='json')
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(resp.data['error']['code'], 'conflict')

    def test_validation_error_envelope(self):
        resp = self.client.post(reverse('patients'), {'name': 'J', 'email': 'not-an-email'}, format='json')
        self.assertEqual(resp.status_code, 400)
        self.assertFalse(resp.data['ok'])
        self.assertEqual(resp.data['error']['code'], 'validation_error')
        fields = {d['field'] for d in resp.data['error']['details']}
        self.assertTrue({'name', 'email', 'phone', 'dateOfBirth'} <= fields)

    def test_search_requires_name_or_email(self):
        resp = self.client.get(reverse('patient_search'))
        self.assertEqual(resp.status_code, 400)
        resp = self.client.get(reverse('patient_search'), {'name': 'jan'})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([p['name'] for p in resp.data['data']], ['Jane Doe'])

    def test_unknown_patient_is_404(self):
        resp = self.client.get(reverse('patient_detail', args=[uuid.uuid4()]))
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.data['error']['code'], 'not_found')

    def test_delete_patient_cascades(self):
        pid = self.patient['id']
        self.client.post(reverse('wallet_add_funds', args=[pid]), {'amount': '10.00'}, format='json')
        self.client.post(reverse('prescriptions'), {
            'patientId': pid, 'medicationName': 'Aspirin', 'dosage': '100mg', 'quantity': 1,
        }, format='json')
        resp = self.client.delete(reverse('patient_detail', args=[pid]))
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(Patient.objects.filter(id=pid).exists())
        self.assertFalse(Wallet.objects.filter(patient_id=pid).exists())
        self.assertFalse(Prescription.objects.filter(patient_id=pid).exists())
        self.assertEqual(Transaction.objects.count(), 0)

    # -- wallets ---------------------------------------------------------

    def test_wallet_funds_and_payment(self):
        pid = self.patient['id']
        resp = self.client.post(reverse('wallet_add_funds', args=[pid]), {'amount': '50.00'}, format='json')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data['data']['newBalance'], '50.00')

        resp = self.client.post(reverse('wallet_payment', args=[pid]), {
            'amount': '30.00', 'description': 'Prescription payment',
        }, format='json')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data['data']['previousBalance'], '50.00')
        self.assertEqual(resp.data['data']['newBalance'], '20.00')

        resp = self.client.post(reverse('wallet_payment', args=[pid]), {
            'amount': '25.00', 'description': 'Too much',
        }, format='json')
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data['error']['code'], 'insufficient_funds')

        resp = self.client.get(reverse('wallet_balance', args=[pid]))
        self.assertEqual(resp.data['data']['balance'], '20.00')

        resp = self.client.get(reverse('wallet_transactions', args=[pid]), {'type': 'debit'})
        self.assertEqual(resp.data['data']['currentBalance'], '20.00')
        self.assertEqual(len(resp.data['data']['transactions']), 1)
        self.assertEqual(resp.data['pagination']['totalItems'], 1)

        resp = self.client.get(reverse('wallet_summary', args=[pid]))
        self.assertEqual(resp.data['data']['totalCredits'], '50.00')
        self.assertEqual(resp.data['data']['totalDebits'], '30.00')
        self.assertEqual(resp.data['data']['totalTransactions'], 2)

    def test_non_positive_amount_rejected(self):
        resp = self.client.post(reverse('wallet_add_funds', args=[self.patient['id']]), {'amount': '0'}, format='json')
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data['error']['code'], 'validation_error')

    # -- medications -----------------------------------------------------

    def test_medication_pagination(self):
        for i in range(15):
            Medication.objects.create(name=f'Med {i:02d}', stock_quantity=20, unit_price=Decimal('1.00'))
        resp = self.client.get(reverse('medications'), {'page': 2, 'limit': 10})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(len(resp.data['data']), 5)
        self.assertEqual(resp.data['pagination'], {
            'currentPage': 2, 'totalPages': 2, 'totalItems': 15, 'itemsPerPage': 10,
        })
        resp = self.client.get(reverse('medications'), {'limit': 101})
        self.assertEqual(resp.status_code, 400)

    def test_restock(self):
        m = Medication.objects.create(name='Ibuprofen', stock_quantity=5, unit_price=Decimal('0.20'))
        url = reverse('medication_restock', args=[m.id])
        for bad in (0, -5):
            resp = self.client.post(url, {'quantity': bad}, format='json')
            self.assertEqual(resp.status_code, 400)
            self.assertEqual(resp.data['error']['code'], 'invalid_argument')
        resp = self.client.post(url, {'quantity': 20}, format='json')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data['data']['previousStock'], 5)
        self.assertEqual(resp.data['data']['newStock'], 25)
        self.assertEqual(resp.data['data']['addedQuantity'], 20)

    def test_low_stock_listing(self):
        Medication.objects.create(name='Plenty', stock_quantity=100, unit_price=1)
        Medication.objects.create(name='Scarce', stock_quantity=2, unit_price=1)
        resp = self.client.get(reverse('medication_low_stock'), {'threshold': 5})
        self.assertEqual([m['name'] for m in resp.data['data']], ['Scarce'])
        self.assertEqual(resp.data['meta'], {'threshold': 5, 'totalLowStock': 1})

    # -- prescriptions ---------------------------------------------------

    def test_prescription_lifecycle(self):
        m = Medication.objects.create(name='Amoxicillin', stock_quantity=10, unit_price=Decimal('2.50'))
        resp = self.client.post(reverse('prescriptions'), {
            'patientId': self.patient['id'], 'medicationName': 'Amoxicillin', 'dosage': '500mg', 'quantity': 4,
            'prescribedBy': 'Dr. House',
        }, format='json')
        self.assertEqual(resp.status_code, 201)
        rx_id = resp.data['data']['id']
        self.assertEqual(resp.data['data']['status'], 'pending')
        self.assertEqual(resp.data['data']['patient']['name'], 'Jane Doe')

        status_url = reverse('prescription_status', args=[rx_id])
        resp = self.client.put(status_url, {'status': 'picked-up'}, format='json')
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data['error']['code'], 'invalid_transition')

        resp = self.client.put(status_url, {'status': 'filled'}, format='json')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data['data']['totalAmount'], '10.00')
        m.refresh_from_db()
        self.assertEqual(m.stock_quantity, 6)

        resp = self.client.put(status_url, {'status': 'filled'}, format='json')
        self.assertEqual(resp.status_code, 400)
        m.refresh_from_db()
        self.assertEqual(m.stock_quantity, 6)

        resp = self.client.delete(reverse('prescription_detail', args=[rx_id]))
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data['error']['code'], 'invalid_state')

        resp = self.client.get(reverse('patient_prescriptions', args=[self.patient['id']]))
        self.assertEqual(resp.data['pagination']['totalItems'], 1)

    def test_fill_with_insufficient_stock(self):
        Medication.objects.create(name='Insulin', stock_quantity=1, unit_price=30)
        resp = self.client.post(reverse('prescriptions'), {
            'patientId': self.patient['id'], 'medicationName': 'Insulin', 'dosage': '10u', 'quantity': 2,
        }, format='json')
        resp = self.client.put(reverse('prescription_status', args=[resp.data['data']['id']]),
                               {'status': 'filled'}, format='json')
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.data['error']['code'], 'insufficient_stock')


    def test_money_is_rendered_as_two_decimal_strings(self):
        pid = self.patient['id']
        resp = self.client.post(reverse('wallet_add_funds', args=[pid]), {'amount': '20'}, format='json')
        body = resp.json()
        self.assertEqual(body['data']['newBalance'], '20.00')
        self.assertEqual(body['data']['amountAdded'], '20.00')
        resp = self.client.get(reverse('wallet_transactions', args=[pid]))
        self.assertEqual(resp.json()['data']['transactions'][0]['balanceAfter'], '20.00')
        Medication.objects.create(name='Zinc', stock_quantity=1, unit_price=3)
        resp = self.client.get(reverse('medications'), {'search': 'Zinc'})
        self.assertEqual(resp.json()['data'][0]['unitPrice'], '3.00')

    def test_payment_with_malformed_reference_id(self):
        pid = self.patient['id']
        self.client.post(reverse('wallet_add_funds', args=[pid]), {'amount': '10.00'}, format='json')
        resp = self.client.post(reverse('wallet_payment', args=[pid]), {
            'amount': '1.00', 'description': 'Fee', 'referenceId': 'not-a-uuid',
        }, format='json')
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(Transaction.objects.filter(type='debit').count(), 0)

    # -- appointments ----------------------------------------------------

    def test_overlapping_slot_conflicts(self):
        self.assertEqual(self.create_slot('09:00:00', '09:30:00').status_code, 201)
        resp = self.create_slot('09:15:00', '09:45:00')
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.data['error']['code'], 'conflict')
        resp = self.create_slot('11:00:00', '10:00:00')
        self.assertEqual(resp.status_code, 400)

    def test_book_cancel_rebook(self):
        slot_id = self.create_slot('09:00:00', '09:30:00', 'pickup').data['data']['id']

        resp = self.client.post(reverse('book'), {'patientId': self.patient['id'], 'slotId': slot_id}, format='json')
        self.assertEqual(resp.status_code, 201)
        booking_id = resp.data['data']['id']
        self.assertEqual(resp.data['data']['slot']['status'], 'booked')

        resp = self.client.post(reverse('book'), {'patientId': self.other['id'], 'slotId': slot_id}, format='json')
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.data['error']['code'], 'unavailable')

        resp = self.client.get(reverse('slots_available'), {'date': self.day})
        self.assertEqual(resp.data['data'], [])

        resp = self.client.put(reverse('booking_cancel', args=[booking_id]))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data['data']['status'], 'cancelled')
        resp = self.client.put(reverse('booking_cancel', args=[booking_id]))
        self.assertEqual(resp.status_code, 400)

        resp = self.client.post(reverse('book'), {'patientId': self.other['id'], 'slotId': slot_id}, format='json')
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(Booking.objects.filter(status='booked').count(), 1)

        resp = self.client.get(reverse('patient_bookings', args=[self.other['id']]))
        self.assertEqual(resp.data['pagination']['totalItems'], 1)

    def test_slot_list_defaults_to_available(self):
        slot_id = self.create_slot('09:00:00', '09:30:00').data['data']['id']
        self.create_slot('10:00:00', '10:30:00')
        self.client.post(reverse('book'), {'patientId': self.patient['id'], 'slotId': slot_id}, format='json')
        resp = self.client.get(reverse('slots'))
        self.assertEqual(resp.data['pagination']['totalItems'], 1)
        resp = self.client.get(reverse('slots'), {'status': 'booked'})
        self.assertEqual(resp.data['data'][0]['id'], slot_id)
        self.assertEqual(AppointmentSlot.objects.count(), 2)

    # -- misc ------------------------------------------------------------

    def test_healthz_and_index(self):
        resp = self.client.get(reverse('healthz'))
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.json()['db'])
        resp = self.client.get(reverse('api_index'))
        self.assertIn('patients', resp.json()['endpoints'])

    def test_method_not_allowed_envelope(self):
        resp = self.client.post(reverse('wallet_balance', args=[self.patient['id']]))
        self.assertEqual(resp.status_code, 405)
        self.assertFalse(resp.data['ok'])
        self.assertEqual(resp.data['error']['code'], 'method_not_allowed')
