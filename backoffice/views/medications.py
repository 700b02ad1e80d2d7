"""
Medication inventory views.

CRUD for medications plus the two stock primitives: an absolute stock
set and an additive restock.  ``low-stock`` lists medications under a
threshold, lowest stock first.
"""
from __future__ import annotations

from django.conf import settings
from rest_framework.decorators import api_view
from rest_framework.response import Response
from rest_framework import status

from ..models import Medication
from ..serializers.medication import (
    MedicationCreateSerializer,
    MedicationUpdateSerializer,
    MedicationListQuerySerializer,
    StockUpdateSerializer,
    RestockSerializer,
    LowStockQuerySerializer,
)
from ..services import inventory
from .common import money, page_response


def serialize_medication(m: Medication) -> dict:
    return {
        'id': str(m.id),
        'name': m.name,
        'stockQuantity': m.stock_quantity,
        'unitPrice': money(m.unit_price),
        'description': m.description,
        'createdAt': m.created_at.isoformat() if m.created_at else None,
        'updatedAt': m.updated_at.isoformat() if m.updated_at else None,
    }


@api_view(['GET', 'POST'])
def medications(request):
    if request.method == 'GET':
        q = MedicationListQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        v = q.validated_data
        page = inventory.list_medications(search=v.get('search'), page=v['page'], limit=v['limit'])
        return page_response(page, serialize_medication)
    data = MedicationCreateSerializer(data=request.data)
    data.is_valid(raise_exception=True)
    v = data.validated_data
    medication = inventory.create_medication(
        name=v['name'],
        stock_quantity=v['stockQuantity'],
        unit_price=v['unitPrice'],
        description=v.get('description') or None,
    )
    return Response({'ok': True, 'data': serialize_medication(medication)}, status=status.HTTP_201_CREATED)


@api_view(['GET'])
def low_stock(request):
    q = LowStockQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    v = q.validated_data
    page = inventory.list_low_stock(threshold=v.get('threshold'), page=v['page'], limit=v['limit'])
    threshold = settings.LOW_STOCK_THRESHOLD if v.get('threshold') is None else v['threshold']
    return page_response(page, serialize_medication, meta={'threshold': threshold, 'totalLowStock': page.total_items})


@api_view(['GET', 'PUT', 'DELETE'])
def medication_detail(request, pk):
    if request.method == 'GET':
        return Response({'ok': True, 'data': serialize_medication(inventory.get_medication(pk))})
    if request.method == 'PUT':
        data = MedicationUpdateSerializer(data=request.data)
        data.is_valid(raise_exception=True)
        v = data.validated_data
        medication = inventory.update_medication(
            pk,
            name=v.get('name'),
            stock_quantity=v.get('stockQuantity'),
            unit_price=v.get('unitPrice'),
            description=v.get('description'),
        )
        return Response({'ok': True, 'data': serialize_medication(medication)})
    inventory.delete_medication(pk)
    return Response({'ok': True, 'message': 'Medication deleted successfully'})


@api_view(['PUT'])
def medication_stock(request, pk):
    data = StockUpdateSerializer(data=request.data)
    data.is_valid(raise_exception=True)
    medication = inventory.set_stock(pk, data.validated_data['stockQuantity'])
    return Response({'ok': True, 'data': {
        'id': str(medication.id),
        'name': medication.name,
        'stockQuantity': medication.stock_quantity,
        'updatedAt': medication.updated_at.isoformat(),
    }})


@api_view(['POST'])
def medication_restock(request, pk):
    data = RestockSerializer(data=request.data)
    data.is_valid(raise_exception=True)
    result = inventory.restock(pk, data.validated_data['quantity'])
    medication = result['medication']
    return Response({'ok': True, 'data': {
        'id': str(medication.id),
        'name': medication.name,
        'previousStock': result['previous_stock'],
        'newStock': result['new_stock'],
        'addedQuantity': result['added_quantity'],
        'updatedAt': medication.updated_at.isoformat(),
    }})
