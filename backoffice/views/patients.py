"""
Patient management views.

Patients are registered together with their wallet, listed, searched,
updated and deleted.  Deleting a patient removes its wallet, ledger,
prescriptions and bookings.
"""
from __future__ import annotations

from rest_framework.decorators import api_view
from rest_framework.response import Response
from rest_framework import status

from ..models import Patient
from ..serializers.common import PaginationQuerySerializer
from ..serializers.patient import PatientCreateSerializer, PatientUpdateSerializer, PatientSearchQuerySerializer
from ..services import patients as patient_service
from .common import money, page_response


def serialize_patient(patient: Patient, *, with_wallet: bool = False) -> dict:
    data = {
        'id': str(patient.id),
        'name': patient.name,
        'email': patient.email,
        'phone': patient.phone,
        'dateOfBirth': patient.date_of_birth.isoformat(),
        'createdAt': patient.created_at.isoformat() if patient.created_at else None,
        'updatedAt': patient.updated_at.isoformat() if patient.updated_at else None,
    }
    if with_wallet:
        wallet = getattr(patient, 'wallet', None)
        data['wallet'] = {'id': str(wallet.id), 'balance': money(wallet.balance)} if wallet else None
    return data


def patient_brief(patient: Patient) -> dict:
    return {'id': str(patient.id), 'name': patient.name, 'email': patient.email, 'phone': patient.phone}


@api_view(['GET', 'POST'])
def patients(request):
    if request.method == 'GET':
        q = PaginationQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        page = patient_service.list_patients(page=q.validated_data['page'], limit=q.validated_data['limit'])
        return page_response(page, serialize_patient)
    data = PatientCreateSerializer(data=request.data)
    data.is_valid(raise_exception=True)
    v = data.validated_data
    patient = patient_service.register_patient(
        name=v['name'], email=v['email'], phone=v['phone'], date_of_birth=v['dateOfBirth'],
    )
    return Response({'ok': True, 'data': serialize_patient(patient)}, status=status.HTTP_201_CREATED)


@api_view(['GET'])
def search_patients(request):
    q = PatientSearchQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    v = q.validated_data
    page = patient_service.search_patients(name=v.get('name'), email=v.get('email'), page=v['page'], limit=v['limit'])
    return page_response(page, serialize_patient)


@api_view(['GET', 'PUT', 'DELETE'])
def patient_detail(request, pk):
    if request.method == 'GET':
        patient = patient_service.get_patient(pk)
        return Response({'ok': True, 'data': serialize_patient(patient, with_wallet=True)})
    if request.method == 'PUT':
        data = PatientUpdateSerializer(data=request.data)
        data.is_valid(raise_exception=True)
        v = data.validated_data
        patient = patient_service.update_patient(
            pk, name=v.get('name'), email=v.get('email'), phone=v.get('phone'), date_of_birth=v.get('dateOfBirth'),
        )
        return Response({'ok': True, 'data': serialize_patient(patient)})
    # DELETE
    patient_service.delete_patient(pk)
    return Response({'ok': True, 'message': 'Patient deleted successfully'})
