"""
Appointment slot and booking views.

Slots are created by staff and booked by patients.  Booking flips the
slot to ``booked``; cancelling the booking releases it again.  Listing
slots defaults to available ones ordered by date and start time.
"""
from __future__ import annotations

from rest_framework.decorators import api_view
from rest_framework.response import Response
from rest_framework import status

from ..models import AppointmentSlot, Booking
from ..serializers.appointment import (
    SlotCreateSerializer,
    SlotUpdateSerializer,
    SlotListQuerySerializer,
    AvailableSlotsQuerySerializer,
    BookingCreateSerializer,
    BookingListQuerySerializer,
)
from ..services import appointments as appointment_service
from .common import page_response
from .patients import patient_brief


def serialize_slot(s: AppointmentSlot) -> dict:
    return {
        'id': str(s.id),
        'date': s.date.isoformat(),
        'startTime': s.start_time.strftime('%H:%M:%S'),
        'endTime': s.end_time.strftime('%H:%M:%S'),
        'serviceType': s.service_type,
        'status': s.status,
        'createdAt': s.created_at.isoformat() if s.created_at else None,
        'updatedAt': s.updated_at.isoformat() if s.updated_at else None,
    }


def serialize_booking(b: Booking, *, with_patient: bool = True) -> dict:
    data = {
        'id': str(b.id),
        'patientId': str(b.patient_id),
        'slotId': str(b.slot_id),
        'notes': b.notes,
        'status': b.status,
        'slot': serialize_slot(b.slot),
        'createdAt': b.created_at.isoformat() if b.created_at else None,
        'updatedAt': b.updated_at.isoformat() if b.updated_at else None,
    }
    if with_patient:
        data['patient'] = patient_brief(b.patient)
    return data


def _booking_without_patient(b: Booking) -> dict:
    return serialize_booking(b, with_patient=False)


@api_view(['GET', 'POST'])
def slots(request):
    if request.method == 'GET':
        q = SlotListQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        v = q.validated_data
        page = appointment_service.list_slots(
            date=v.get('date'), service_type=v.get('serviceType'), status=v.get('status'),
            page=v['page'], limit=v['limit'],
        )
        return page_response(page, serialize_slot)
    data = SlotCreateSerializer(data=request.data)
    data.is_valid(raise_exception=True)
    v = data.validated_data
    slot = appointment_service.create_slot(
        date=v['date'], start_time=v['startTime'], end_time=v['endTime'], service_type=v['serviceType'],
    )
    return Response({'ok': True, 'data': serialize_slot(slot)}, status=status.HTTP_201_CREATED)


@api_view(['GET'])
def available_slots(request):
    q = AvailableSlotsQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    v = q.validated_data
    items = appointment_service.available_slots(date=v.get('date'), service_type=v.get('serviceType'))
    return Response({'ok': True, 'data': [serialize_slot(s) for s in items]})


@api_view(['PUT'])
def slot_detail(request, pk):
    data = SlotUpdateSerializer(data=request.data)
    data.is_valid(raise_exception=True)
    v = data.validated_data
    slot = appointment_service.update_slot(
        pk, date=v.get('date'), start_time=v.get('startTime'), end_time=v.get('endTime'),
        service_type=v.get('serviceType'),
    )
    return Response({'ok': True, 'data': serialize_slot(slot)})


@api_view(['POST'])
def book(request):
    data = BookingCreateSerializer(data=request.data)
    data.is_valid(raise_exception=True)
    v = data.validated_data
    booking = appointment_service.book(patient_id=v['patientId'], slot_id=v['slotId'], notes=v.get('notes') or None)
    return Response({'ok': True, 'data': serialize_booking(booking)}, status=status.HTTP_201_CREATED)


@api_view(['GET'])
def bookings(request):
    q = BookingListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    v = q.validated_data
    page = appointment_service.list_bookings(
        patient_id=v.get('patientId'), status=v.get('status'), date=v.get('date'),
        page=v['page'], limit=v['limit'],
    )
    return page_response(page, serialize_booking)


@api_view(['GET'])
def booking_detail(request, pk):
    return Response({'ok': True, 'data': serialize_booking(appointment_service.get_booking(pk))})


@api_view(['PUT'])
def cancel_booking(request, pk):
    booking = appointment_service.cancel(pk)
    return Response({'ok': True, 'message': 'Booking cancelled successfully', 'data': serialize_booking(booking)})


@api_view(['GET'])
def patient_bookings(request, patient_id):
    q = BookingListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    v = q.validated_data
    page = appointment_service.list_patient_bookings(patient_id, status=v.get('status'), page=v['page'], limit=v['limit'])
    return page_response(page, _booking_without_patient)
