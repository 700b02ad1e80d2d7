import logging
from datetime import date
from typing import Optional

from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone

from backoffice.exceptions import Conflict, InvalidArgument, NotFound
from backoffice.models import AppointmentSlot, Booking, Patient
from backoffice.services import wallets
from backoffice.services.pagination import paginate, Page

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ('name', 'email', 'phone', 'date_of_birth')


def _check_date_of_birth(value: date) -> None:
    if value >= timezone.localdate():
        raise InvalidArgument('date of birth must be in the past')


def get_patient(patient_id) -> Patient:
    patient = Patient.objects.select_related('wallet').filter(id=patient_id).first()
    if not patient:
        raise NotFound('Patient not found')
    return patient


def register_patient(*, name: str, email: str, phone: str, date_of_birth: date) -> Patient:
    """Create a patient together with its empty wallet.

    Both rows are written in one unit of work; a duplicate email aborts
    the whole registration with :class:`Conflict`.
    """
    _check_date_of_birth(date_of_birth)
    if Patient.objects.filter(email__iexact=email).exists():
        raise Conflict('A patient with this email already exists')
    try:
        with transaction.atomic():
            patient = Patient.objects.create(name=name, email=email, phone=phone, date_of_birth=date_of_birth)
            wallets.create_wallet(patient)
    except IntegrityError as exc:
        raise Conflict('A patient with this email already exists') from exc
    logger.info('patient registered id=%s', patient.id)
    return patient


def list_patients(*, page: int = 1, limit: int = 10) -> Page:
    return paginate(Patient.objects.order_by('-created_at', '-id'), page, limit)


def search_patients(*, name: Optional[str] = None, email: Optional[str] = None, page: int = 1, limit: int = 10) -> Page:
    if not name and not email:
        raise InvalidArgument('Please provide name or email to search')
    cond = Q()
    if name:
        cond &= Q(name__icontains=name)
    if email:
        cond &= Q(email__icontains=email)
    return paginate(Patient.objects.filter(cond).order_by('name', 'id'), page, limit)


def update_patient(patient_id, **fields) -> Patient:
    patient = get_patient(patient_id)
    changes = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS and v is not None}
    if 'date_of_birth' in changes:
        _check_date_of_birth(changes['date_of_birth'])
    if 'email' in changes and Patient.objects.filter(email__iexact=changes['email']).exclude(id=patient.id).exists():
        raise Conflict('A patient with this email already exists')
    for field, value in changes.items():
        setattr(patient, field, value)
    try:
        with transaction.atomic():
            patient.save()
    except IntegrityError as exc:
        raise Conflict('A patient with this email already exists') from exc
    return patient


def delete_patient(patient_id) -> None:
    # wallet, transactions, prescriptions and bookings go with the patient;
    # slots held by its active bookings are released first
    patient = get_patient(patient_id)
    with transaction.atomic():
        AppointmentSlot.objects.filter(
            bookings__patient=patient, bookings__status=Booking.STATUS_BOOKED,
        ).update(status=AppointmentSlot.STATUS_AVAILABLE)
        patient.delete()
    logger.info('patient deleted id=%s', patient_id)
