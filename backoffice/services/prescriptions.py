"""
Prescription lifecycle.

A prescription moves strictly ``pending -> filled -> picked-up``.  Filling
consumes medication stock and prices the prescription; both happen in
the same unit of work as the status change.
"""
import logging
from decimal import Decimal
from typing import Optional

from django.db import transaction

from backoffice.exceptions import InsufficientStock, InvalidArgument, InvalidState, InvalidTransition, NotFound
from backoffice.models import Patient, Prescription
from backoffice.services import inventory
from backoffice.services.pagination import paginate, Page

logger = logging.getLogger(__name__)

TRANSITIONS = {
    Prescription.STATUS_PENDING: [Prescription.STATUS_FILLED],
    Prescription.STATUS_FILLED: [Prescription.STATUS_PICKED_UP],
    Prescription.STATUS_PICKED_UP: [],
}


def can_transition(current: str, new: str) -> bool:
    return new in TRANSITIONS.get(current, [])


def price_for(unit_price, quantity: int) -> Decimal:
    return (Decimal(unit_price) * quantity).quantize(Decimal('0.01'))


def get_prescription(prescription_id, *, for_update: bool = False) -> Prescription:
    qs = Prescription.objects.select_for_update() if for_update else Prescription.objects.select_related('patient')
    prescription = qs.filter(id=prescription_id).first()
    if not prescription:
        raise NotFound('Prescription not found')
    return prescription


def create_prescription(*, patient_id, medication_name: str, dosage: str, quantity: int,
                        instructions: Optional[str] = None, prescribed_by: Optional[str] = None) -> Prescription:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise InvalidArgument('quantity must be an integer >= 1')
    patient = Patient.objects.filter(id=patient_id).first()
    if not patient:
        raise NotFound('Patient not found')
    total_amount = None
    medication = inventory.find_by_name(medication_name)
    if medication:
        amount = price_for(medication.unit_price, quantity)
        total_amount = amount if amount > 0 else None
    return Prescription.objects.create(
        patient=patient,
        medication_name=medication_name,
        dosage=dosage,
        quantity=quantity,
        instructions=instructions,
        prescribed_by=prescribed_by,
        total_amount=total_amount,
        status=Prescription.STATUS_PENDING,
    )


def update_status(prescription_id, new_status: str) -> Prescription:
    """Move a prescription to ``new_status``.

    Filling looks the medication up by exact name.  When one exists its
    stock must cover the prescribed quantity; it is decremented and the
    prescription priced if it has no amount yet.  When none exists the
    prescription is filled without stock or pricing effects.
    """
    with transaction.atomic():
        prescription = get_prescription(prescription_id, for_update=True)
        current = prescription.status
        if not can_transition(current, new_status):
            raise InvalidTransition(f'Cannot change status from {current} to {new_status}')

        if new_status == Prescription.STATUS_FILLED:
            medication = inventory.find_by_name(prescription.medication_name, for_update=True)
            if medication:
                if medication.stock_quantity < prescription.quantity:
                    logger.warning('prescription %s needs %s of %s, only %s in stock',
                                   prescription.id, prescription.quantity, medication.name, medication.stock_quantity)
                    raise InsufficientStock('Insufficient medication stock')
                medication.stock_quantity -= prescription.quantity
                medication.save(update_fields=['stock_quantity', 'updated_at'])
                if not prescription.total_amount:
                    prescription.total_amount = price_for(medication.unit_price, prescription.quantity)
            else:
                logger.info('prescription %s filled without stock effects, no medication named %r',
                            prescription.id, prescription.medication_name)

        prescription.status = new_status
        prescription.save()
    logger.info('prescription %s status %s -> %s', prescription.id, current, new_status)
    return prescription


def delete_prescription(prescription_id) -> None:
    prescription = get_prescription(prescription_id)
    if prescription.status != Prescription.STATUS_PENDING:
        raise InvalidState('Cannot delete prescription that has been filled or picked up')
    prescription.delete()


def list_prescriptions(*, patient_id=None, status: Optional[str] = None, page: int = 1, limit: int = 10) -> Page:
    qs = Prescription.objects.select_related('patient')
    if patient_id:
        qs = qs.filter(patient_id=patient_id)
    if status:
        qs = qs.filter(status=status)
    return paginate(qs.order_by('-created_at', '-id'), page, limit)


def list_patient_prescriptions(patient_id, *, status: Optional[str] = None, page: int = 1, limit: int = 10) -> Page:
    if not Patient.objects.filter(id=patient_id).exists():
        raise NotFound('Patient not found')
    return list_prescriptions(patient_id=patient_id, status=status, page=page, limit=limit)
