"""
Appointment slots and bookings.

Slots on the same date never overlap: creation and updates run an
inclusive-boundary overlap test against every slot of that date.  Booking
is the contended path.  The slot row is locked and its status flipped
with a conditional ``UPDATE ... WHERE status='available'`` inside the
same unit of work that creates the booking, so two concurrent bookers can
never both win.
"""
import logging
from datetime import date, time
from typing import Optional

from django.db import IntegrityError, transaction
from django.db.models import Q

from backoffice.exceptions import Conflict, InvalidArgument, InvalidState, NotFound, Unavailable
from backoffice.models import AppointmentSlot, Booking, Patient
from backoffice.services.pagination import paginate, Page

logger = logging.getLogger(__name__)

SLOT_FIELDS = ('date', 'start_time', 'end_time', 'service_type')


def overlapping(qs, start: time, end: time):
    """Filter ``qs`` down to slots touching ``[start, end]`` (boundaries inclusive)."""
    return qs.filter(
        Q(start_time__range=(start, end))
        | Q(end_time__range=(start, end))
        | Q(start_time__lte=start, end_time__gte=end)
    )


def _check_interval(slot_date: date, start: time, end: time, exclude_id=None) -> None:
    if start >= end:
        raise InvalidArgument('End time must be after start time')
    qs = AppointmentSlot.objects.filter(date=slot_date)
    if exclude_id is not None:
        qs = qs.exclude(id=exclude_id)
    if overlapping(qs, start, end).exists():
        raise Conflict('Time slot conflicts with existing appointment slot')


def _check_service_type(service_type: str) -> None:
    if service_type not in dict(AppointmentSlot.SERVICE_CHOICES):
        raise InvalidArgument(f'unknown service type: {service_type}')


def get_slot(slot_id, *, for_update: bool = False) -> AppointmentSlot:
    qs = AppointmentSlot.objects.select_for_update() if for_update else AppointmentSlot.objects
    slot = qs.filter(id=slot_id).first()
    if not slot:
        raise NotFound('Appointment slot not found')
    return slot


def create_slot(*, date: date, start_time: time, end_time: time, service_type: str) -> AppointmentSlot:
    _check_service_type(service_type)
    try:
        with transaction.atomic():
            _check_interval(date, start_time, end_time)
            slot = AppointmentSlot.objects.create(
                date=date, start_time=start_time, end_time=end_time,
                service_type=service_type, status=AppointmentSlot.STATUS_AVAILABLE,
            )
    except IntegrityError as exc:
        raise Conflict('Time slot conflicts with existing appointment slot') from exc
    return slot


def update_slot(slot_id, **fields) -> AppointmentSlot:
    changes = {k: v for k, v in fields.items() if k in SLOT_FIELDS and v is not None}
    if 'service_type' in changes:
        _check_service_type(changes['service_type'])
    try:
        with transaction.atomic():
            slot = get_slot(slot_id, for_update=True)
            if slot.status == AppointmentSlot.STATUS_BOOKED:
                raise InvalidState('Cannot update booked appointment slot')
            for field, value in changes.items():
                setattr(slot, field, value)
            _check_interval(slot.date, slot.start_time, slot.end_time, exclude_id=slot.id)
            slot.save()
    except IntegrityError as exc:
        raise Conflict('Time slot conflicts with existing appointment slot') from exc
    return slot


def list_slots(*, date: Optional[date] = None, service_type: Optional[str] = None,
               status: Optional[str] = AppointmentSlot.STATUS_AVAILABLE, page: int = 1, limit: int = 10) -> Page:
    qs = AppointmentSlot.objects.all()
    if date:
        qs = qs.filter(date=date)
    if service_type:
        qs = qs.filter(service_type=service_type)
    if status:
        qs = qs.filter(status=status)
    return paginate(qs.order_by('date', 'start_time'), page, limit)


def available_slots(*, date: Optional[date] = None, service_type: Optional[str] = None) -> list:
    qs = AppointmentSlot.objects.filter(status=AppointmentSlot.STATUS_AVAILABLE)
    if date:
        qs = qs.filter(date=date)
    if service_type:
        qs = qs.filter(service_type=service_type)
    return list(qs.order_by('date', 'start_time'))


def book(*, patient_id, slot_id, notes: Optional[str] = None) -> Booking:
    with transaction.atomic():
        patient = Patient.objects.filter(id=patient_id).first()
        if not patient:
            raise NotFound('Patient not found')
        slot = get_slot(slot_id, for_update=True)
        if not slot.is_available():
            logger.warning('slot %s not available (status=%s)', slot.id, slot.status)
            raise Unavailable('Appointment slot is not available')
        flipped = AppointmentSlot.objects.filter(
            id=slot.id, status=AppointmentSlot.STATUS_AVAILABLE,
        ).update(status=AppointmentSlot.STATUS_BOOKED)
        if flipped != 1:
            logger.warning('slot %s taken by a concurrent booking', slot.id)
            raise Unavailable('Appointment slot is not available')
        booking = Booking.objects.create(patient=patient, slot=slot, notes=notes, status=Booking.STATUS_BOOKED)
    logger.info('slot %s booked by patient %s (booking %s)', slot.id, patient.id, booking.id)
    return get_booking(booking.id)


def cancel(booking_id) -> Booking:
    with transaction.atomic():
        booking = Booking.objects.select_for_update().filter(id=booking_id).first()
        if not booking:
            raise NotFound('Booking not found')
        if booking.status == Booking.STATUS_CANCELLED:
            raise InvalidState('Booking is already cancelled')
        if booking.status == Booking.STATUS_COMPLETED:
            raise InvalidState('Cannot cancel completed booking')
        booking.status = Booking.STATUS_CANCELLED
        booking.save(update_fields=['status', 'updated_at'])
        AppointmentSlot.objects.filter(id=booking.slot_id).update(status=AppointmentSlot.STATUS_AVAILABLE)
    logger.info('booking %s cancelled, slot %s released', booking.id, booking.slot_id)
    return get_booking(booking.id)


def get_booking(booking_id) -> Booking:
    booking = Booking.objects.select_related('patient', 'slot').filter(id=booking_id).first()
    if not booking:
        raise NotFound('Booking not found')
    return booking


def list_bookings(*, patient_id=None, status: Optional[str] = None, date: Optional[date] = None,
                  page: int = 1, limit: int = 10) -> Page:
    qs = Booking.objects.select_related('patient', 'slot')
    if patient_id:
        qs = qs.filter(patient_id=patient_id)
    if status:
        qs = qs.filter(status=status)
    if date:
        qs = qs.filter(slot__date=date)
    return paginate(qs.order_by('-created_at', '-id'), page, limit)


def list_patient_bookings(patient_id, *, status: Optional[str] = None, page: int = 1, limit: int = 10) -> Page:
    if not Patient.objects.filter(id=patient_id).exists():
        raise NotFound('Patient not found')
    return list_bookings(patient_id=patient_id, status=status, page=page, limit=limit)
