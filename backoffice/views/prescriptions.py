"""
Prescription views.

Status changes go through ``PUT /api/prescriptions/<id>/status``; filling
a prescription consumes stock of the medication with the same name.
"""
from __future__ import annotations

from rest_framework.decorators import api_view
from rest_framework.response import Response
from rest_framework import status

from ..models import Prescription
from ..serializers.prescription import (
    PrescriptionCreateSerializer,
    PrescriptionStatusSerializer,
    PrescriptionListQuerySerializer,
)
from ..services import prescriptions as prescription_service
from .common import money, page_response
from .patients import patient_brief


def serialize_prescription(p: Prescription, *, with_patient: bool = True) -> dict:
    data = {
        'id': str(p.id),
        'patientId': str(p.patient_id),
        'medicationName': p.medication_name,
        'dosage': p.dosage,
        'quantity': p.quantity,
        'status': p.status,
        'instructions': p.instructions,
        'prescribedBy': p.prescribed_by,
        'totalAmount': money(p.total_amount),
        'createdAt': p.created_at.isoformat() if p.created_at else None,
        'updatedAt': p.updated_at.isoformat() if p.updated_at else None,
    }
    if with_patient:
        data['patient'] = patient_brief(p.patient)
    return data


def _serialize_without_patient(p: Prescription) -> dict:
    return serialize_prescription(p, with_patient=False)


@api_view(['GET', 'POST'])
def prescriptions(request):
    if request.method == 'GET':
        q = PrescriptionListQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        v = q.validated_data
        page = prescription_service.list_prescriptions(
            patient_id=v.get('patientId'), status=v.get('status'), page=v['page'], limit=v['limit'],
        )
        return page_response(page, serialize_prescription)
    data = PrescriptionCreateSerializer(data=request.data)
    data.is_valid(raise_exception=True)
    v = data.validated_data
    prescription = prescription_service.create_prescription(
        patient_id=v['patientId'],
        medication_name=v['medicationName'],
        dosage=v['dosage'],
        quantity=v['quantity'],
        instructions=v.get('instructions') or None,
        prescribed_by=v.get('prescribedBy') or None,
    )
    return Response({'ok': True, 'data': serialize_prescription(prescription)}, status=status.HTTP_201_CREATED)


@api_view(['GET', 'DELETE'])
def prescription_detail(request, pk):
    if request.method == 'GET':
        return Response({'ok': True, 'data': serialize_prescription(prescription_service.get_prescription(pk))})
    prescription_service.delete_prescription(pk)
    return Response({'ok': True, 'message': 'Prescription deleted successfully'})


@api_view(['PUT'])
def prescription_status(request, pk):
    data = PrescriptionStatusSerializer(data=request.data)
    data.is_valid(raise_exception=True)
    new_status = data.validated_data['status']
    prescription = prescription_service.update_status(pk, new_status)
    return Response({
        'ok': True,
        'message': f'Prescription status updated to {new_status}',
        'data': serialize_prescription(prescription, with_patient=False),
    })


@api_view(['GET'])
def patient_prescriptions(request, patient_id):
    q = PrescriptionListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    v = q.validated_data
    page = prescription_service.list_patient_prescriptions(
        patient_id, status=v.get('status'), page=v['page'], limit=v['limit'],
    )
    return page_response(page, _serialize_without_patient)
